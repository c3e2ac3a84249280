# accounting/management/commands/seed_chart.py

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounting.models.account import Account
from accounting.services.account_resolver import DEFAULT_CHART, seed_default_chart
from companies.models import Company


class Command(BaseCommand):
    help = "Seed the default chart of accounts (with system roles) for one company, or all of them"

    def add_arguments(self, parser):
        parser.add_argument("company", nargs="?", help="Company code (e.g. ACME)")
        parser.add_argument("--all", action="store_true", help="Seed every active company")
        parser.add_argument(
            "--create",
            metavar="NAME",
            help="Create the company with this name when the code does not exist yet",
        )

    def _companies(self, options):
        if options["all"]:
            return list(Company.objects.filter(is_active=True).order_by("code"))

        code = (options.get("company") or "").strip().upper()
        if not code:
            raise CommandError("Provide a company code or --all")

        company = Company.objects.filter(code=code).first()
        if company is None:
            if not options.get("create"):
                raise CommandError(f"Company {code} not found (use --create NAME to create it)")
            company = Company.objects.create(code=code, name=options["create"])
            self.stdout.write(f"Created company {company}")
        return [company]

    @transaction.atomic
    def handle(self, *args, **options):
        companies = self._companies(options)
        if not companies:
            self.stdout.write(self.style.WARNING("No active companies to seed"))
            return

        for company in companies:
            self.stdout.write(f"Seeding chart for {company.code}...")
            before = Account.objects.filter(company=company).count()
            seed_default_chart(company)
            created = Account.objects.filter(company=company).count() - before

            self.stdout.write(f"  accounts created: {created}, already present: {len(DEFAULT_CHART) - created}")

            missing = [
                role
                for role in Account.SystemRole.values
                if not Account.objects.filter(company=company, system_role=role, is_active=True).exists()
            ]
            if missing:
                self.stdout.write(
                    self.style.WARNING(f"  roles without an active account: {', '.join(missing)}")
                )

        self.stdout.write(self.style.SUCCESS("Chart seeding complete"))
