# accounting/models/sequence.py

from __future__ import annotations

from django.db import models

from companies.models import Company


class VoucherSequence(models.Model):
    """
    Per-company counters for voucher and document numbers.

    One row per (company, prefix, period). The row is locked with
    SELECT ... FOR UPDATE while the next value is allocated, inside the same
    transaction that inserts the numbered row, so two concurrent posters can
    never draw the same number. period is the entry year for vouchers and ""
    for documents numbered across all time (INV-00001).
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="voucher_sequences",
    )
    prefix = models.CharField(max_length=10)
    period = models.CharField(max_length=10, blank=True, default="")
    last_value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "prefix", "period"],
                name="uniq_voucher_sequence_scope",
            ),
        ]

    def __str__(self):
        return f"{self.company_id}:{self.prefix}:{self.period or '-'}={self.last_value}"
