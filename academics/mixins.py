"""
Reusable mixins for the API viewsets.
"""
from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.response import Response

from .exceptions import DashboardError
from .models import Quarter
from .quarters import get_active_quarter


class ActiveQuarterMixin:
    """Resolve the quarter once per request: ``?quarter=<id>`` or the active one"""

    def get_quarter(self):
        if not hasattr(self, '_quarter'):
            quarter_id = self.request.query_params.get('quarter')
            if not quarter_id and isinstance(self.request.data, dict):
                quarter_id = self.request.data.get('quarter')
            if quarter_id:
                self._quarter = Quarter.objects.filter(pk=quarter_id).first() if str(quarter_id).isdigit() else None
            else:
                self._quarter = get_active_quarter()
        return self._quarter


class SearchMixin:
    """``?search=`` over the fields listed in ``search_fields``"""

    search_fields = ()

    def build_search_query(self, search_term):
        if not search_term or not self.search_fields:
            return Q()

        q = Q()
        for field in self.search_fields:
            q |= Q(**{f"{field}__icontains": search_term})
        return q


class StandardViewSet(SearchMixin, viewsets.ModelViewSet):
    """Base ViewSet with search and ``?<field>=`` filtering"""

    filter_fields = ()

    def get_queryset(self):
        queryset = self.queryset.all()

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(self.build_search_query(search))

        for field in self.filter_fields:
            value = self.request.query_params.get(field)
            if value:
                queryset = queryset.filter(**{field: value})

        return queryset


def error_response(error, status_code=status.HTTP_400_BAD_REQUEST):
    """Convert a domain error (or message) into the API error payload."""
    message = str(error) if isinstance(error, (DashboardError, str)) else 'Request failed'
    return Response({'error': message}, status=status_code)
