"""
Management command to record a completed checkout.

Purchases normally arrive from the checkout provider already paid. This
command records one by hand, for support cases and local setup.

Usage:
    python manage.py record_purchase --email maria@example.com \
        --product <product-uuid> [--product <product-uuid> ...] \
        [--external-id cs_test_123] [--dry-run]
"""

import uuid

from django.core.management.base import BaseCommand, CommandError
from apps.accounts.models import User
from apps.purchases.exceptions import ProductNotFoundError
from apps.purchases.models import Product
from apps.purchases.services import record_purchase


class Command(BaseCommand):
    help = 'Record a completed purchase with one item per product'

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True, help='Purchaser email')
        parser.add_argument(
            '--product',
            action='append',
            required=True,
            dest='products',
            help='Product id, repeat for several items',
        )
        parser.add_argument('--external-id', default='', help='Checkout provider id')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be recorded without making changes',
        )

    def handle(self, *args, **options):
        try:
            user = User.objects.get(email=options['email'])
        except User.DoesNotExist:
            raise CommandError(f"No user with email {options['email']}")

        try:
            product_ids = [uuid.UUID(pid) for pid in options['products']]
        except ValueError:
            raise CommandError(f"Invalid product id in {options['products']}")

        products = Product.objects.filter(id__in=product_ids)
        self.stdout.write(f"\nPurchase for {user.email}:\n")
        for product in products:
            self.stdout.write(f'  - {product.name} ({product.type})')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        try:
            purchase, items = record_purchase(
                user=user,
                product_ids=product_ids,
                external_id=options['external_id'],
            )
        except ProductNotFoundError as e:
            raise CommandError(str(e))

        self.stdout.write(
            self.style.SUCCESS(f'\nRecorded purchase {purchase.id} with {len(items)} item(s).')
        )
