# clinic_core/visits/api/filters.py
from __future__ import annotations

import django_filters

from clinic_core.visits.models import Gender, PatientVisit, VisitStatus
from clinic_core.visits.selectors import filter_by_status, search_visits


class VisitFilter(django_filters.FilterSet):
    date = django_filters.DateFilter(field_name="date_key")
    start = django_filters.DateFilter(field_name="date_key", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="date_key", lookup_expr="lte")
    gender = django_filters.ChoiceFilter(choices=Gender.choices[1:])
    status = django_filters.ChoiceFilter(choices=VisitStatus.choices, method="filter_status")
    q = django_filters.CharFilter(method="filter_q")

    class Meta:
        model = PatientVisit
        fields = ["date", "start", "end", "gender", "status", "q"]

    def filter_status(self, queryset, name, value):
        return filter_by_status(queryset, value)

    def filter_q(self, queryset, name, value):
        return search_visits(queryset, value)
