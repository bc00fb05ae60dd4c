"""Read access to guest accounts for the reservation engine."""

from __future__ import annotations

from typing import Iterable, List

from django.contrib.auth import get_user_model  # type: ignore

from shared.domain.exceptions import NotFoundError


class UserDirectory:
    """
    Looks up users by id.

    Account management and authentication live outside the reservation
    engine; only existence and the is_active flag matter here.
    """

    def find_by_id(self, user_id):
        user_model = get_user_model()
        try:
            return user_model.objects.get(pk=user_id)
        except (user_model.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"User not found with ID: {user_id}")

    def find_by_ids(self, user_ids: Iterable) -> List:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return []
        return list(get_user_model().objects.filter(pk__in=ids))
