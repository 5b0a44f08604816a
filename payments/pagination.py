from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """Page-number pagination driven by ?page=&limit= with a summary block"""
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 200

    def get_pagination_summary(self):
        return {
            'currentPage': self.page.number,
            'totalPages': self.page.paginator.num_pages,
            'totalItems': self.page.paginator.count,
            'limit': self.get_page_size(self.request),
        }

    def get_paginated_response(self, data, key='results', **extra):
        body = {'success': True, key: data, 'pagination': self.get_pagination_summary()}
        body.update(extra)
        return Response(body)


class AdminPagination(PageLimitPagination):
    page_size = 50
