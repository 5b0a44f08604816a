"""
PayHere gateway configuration
Built once from Django settings and passed explicitly to the components that need it
"""
from dataclasses import dataclass

from django.conf import settings


SANDBOX_API_BASE_URL = 'https://sandbox.payhere.lk/pay/api'
LIVE_API_BASE_URL = 'https://www.payhere.lk/pay/api'


def _clean(value):
    return (value or '').strip()


@dataclass(frozen=True)
class PayHereConfig:
    """Merchant credentials and callback URLs for the PayHere gateway"""
    merchant_id: str
    merchant_secret: str
    app_id: str = ''
    app_secret: str = ''
    mode: str = 'sandbox'
    return_url: str = ''
    cancel_url: str = ''
    notify_url: str = ''

    @classmethod
    def from_settings(cls):
        """Build the configuration from the current Django settings"""
        return cls(
            merchant_id=_clean(getattr(settings, 'PAYHERE_MERCHANT_ID', '')),
            merchant_secret=_clean(getattr(settings, 'PAYHERE_MERCHANT_SECRET', '')),
            app_id=_clean(getattr(settings, 'PAYHERE_APP_ID', '')),
            app_secret=_clean(getattr(settings, 'PAYHERE_APP_SECRET', '')),
            mode=_clean(getattr(settings, 'PAYHERE_MODE', 'sandbox')).lower() or 'sandbox',
            return_url=_clean(getattr(settings, 'PAYHERE_RETURN_URL', '')),
            cancel_url=_clean(getattr(settings, 'PAYHERE_CANCEL_URL', '')),
            notify_url=_clean(getattr(settings, 'PAYHERE_NOTIFY_URL', '')),
        )

    @property
    def is_sandbox(self):
        return self.mode != 'live'

    @property
    def api_base_url(self):
        return LIVE_API_BASE_URL if self.mode == 'live' else SANDBOX_API_BASE_URL

    def validate(self):
        """Return a list of configuration problems (empty when usable)"""
        issues = []
        if not self.merchant_id:
            issues.append('Missing PAYHERE_MERCHANT_ID')
        if not self.merchant_secret:
            issues.append('Missing PAYHERE_MERCHANT_SECRET')
        return issues

    @property
    def is_valid(self):
        return not self.validate()
