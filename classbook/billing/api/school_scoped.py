"""
Mixin and permission classes for school-scoped API views.

School-scoped endpoints resolve the school from the ``school_id`` URL kwarg
and are open to that school's principal and to staff.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.shortcuts import get_object_or_404
from rest_framework import permissions

from classbook.schools.models import School

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


def can_manage_school(user, school: School) -> bool:
    if not user.is_authenticated:
        return False
    return user.is_staff or school.principal_id == user.pk


class SchoolScopedMixin:
    """
    Mixin that resolves the school from the URL path.

    Expects URL pattern to include a `school_id` kwarg:
        path("schools/<int:school_id>/invoices/", ...)
    """

    _school: School | None = None

    def get_school(self) -> School:
        """
        Return the school from the URL path.

        Raises Http404 if the school doesn't exist.
        """
        if self._school is None:
            self._school = get_object_or_404(School, pk=self.kwargs.get("school_id"))
        return self._school

    @property
    def school(self) -> School:
        return self.get_school()


class SchoolPrincipalPermission(permissions.BasePermission):
    """Grants access to the school's principal and to staff."""

    message = "You must be the principal of this school."

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not hasattr(view, "get_school"):
            return True
        return can_manage_school(request.user, view.get_school())
