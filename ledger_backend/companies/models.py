# companies/models.py

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Company(models.Model):
    """
    A tenant of the ledger.

    Guarantees:
    - code is unique and normalized (trimmed, upper-case)
    - members are the users allowed to act for this company
    """

    code = models.CharField(
        max_length=32,
        unique=True,
        help_text="Stable tenant key (e.g. ACME). Do not change after go-live.",
    )
    name = models.CharField(max_length=255)

    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="companies",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "Company"
        verbose_name_plural = "Companies"
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_company_code_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def clean(self):
        self.code = (self.code or "").strip().upper()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError({"code": "code is required"})
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def has_member(self, user) -> bool:
        if user is None or not getattr(user, "is_authenticated", False):
            return False
        if getattr(user, "is_superuser", False):
            return True
        return self.members.filter(pk=user.pk).exists()
