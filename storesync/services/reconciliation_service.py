# storesync/services/reconciliation_service.py
"""
Reconciliation of Shopify entities into the analytics store.

Every public operation takes a tenant id and one raw Shopify payload (the
REST/webhook JSON shape) and merges it into the tenant's rows, keyed on the
(tenant_id, external_id) natural key:

- reconcile_customer / reconcile_product: atomic upsert, idempotent.
- reconcile_order: upsert of the order header, resolution of the customer and
  product references, full replacement of the order items and, optionally,
  the paid-order spend aggregate on the customer.

Operations do not commit. The caller owns the transaction, so everything an
operation writes (header, item delete, item recreate, aggregate) is committed
or rolled back together.

Reference resolution goes through resolve_customer / resolve_product with an
explicit create_if_missing flag. Full sync passes False (lookup only, never
invents rows from order data); webhooks pass True (upsert from the embedded
fragment, since the referenced entity may not have been synced yet).
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from storesync.core.enums import FINANCIAL_STATUS_PAID
from storesync.core.exceptions import ItemReconciliationError
from storesync.models.customer import Customer
from storesync.models.order import Order, OrderItem
from storesync.models.product import Product
from storesync.services.shopify.utils import (
    first_variant,
    handle_from_title,
    normalize_external_id,
    parse_shopify_date,
    to_decimal,
)

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

CUSTOMER_CONTACT_FIELDS = ("email", "first_name", "last_name", "phone")


class ReconciliationService:
    """Merges Shopify customers, products and orders into one tenant's rows."""

    def __init__(self, db_session: AsyncSession):
        self.session = db_session

    # --- Customers ---

    async def reconcile_customer(self, tenant_id: int, data: Dict[str, Any]) -> int:
        """
        Create or overwrite a customer from a Shopify customer payload.

        total_spent and orders_count are replaced with Shopify's own snapshot.

        Returns:
            The internal customer id
        """
        try:
            external_id = normalize_external_id(data.get("id"))
            values = {
                "email": data.get("email"),
                "first_name": data.get("first_name"),
                "last_name": data.get("last_name"),
                "phone": data.get("phone"),
                "tags": data.get("tags"),
                "total_spent": to_decimal(data.get("total_spent")),
                "orders_count": int(data.get("orders_count") or 0),
                "platform_created_at": parse_shopify_date(data.get("created_at")),
                "platform_updated_at": parse_shopify_date(data.get("updated_at")),
            }
        except (AttributeError, TypeError, ValueError) as e:
            raise ItemReconciliationError(f"Customer {data.get('id')!r} could not be mapped: {str(e)}") from e

        return await self._upsert(Customer, tenant_id, external_id, values)

    async def resolve_customer(
        self, tenant_id: int, fragment: Optional[Dict[str, Any]], create_if_missing: bool
    ) -> Optional[int]:
        """
        Resolve the customer an order refers to.

        With create_if_missing the customer is upserted from the fragment's
        contact fields (the spend aggregate is left alone); otherwise it is
        looked up only and None is returned when it has not been synced.
        """
        if not fragment or fragment.get("id") in (None, ""):
            return None

        try:
            external_id = normalize_external_id(fragment.get("id"))
        except ValueError as e:
            raise ItemReconciliationError(f"Order customer could not be mapped: {str(e)}") from e

        if not create_if_missing:
            return await self._find_id(Customer, tenant_id, external_id)

        contact = {key: fragment.get(key) for key in CUSTOMER_CONTACT_FIELDS if key in fragment}
        return await self._upsert(Customer, tenant_id, external_id, contact)

    # --- Products ---

    async def reconcile_product(self, tenant_id: int, data: Dict[str, Any]) -> int:
        """
        Create or overwrite a product from a Shopify product payload.
        Pricing comes from the first variant.

        Returns:
            The internal product id
        """
        try:
            external_id = normalize_external_id(data.get("id"))
            variant = first_variant(data)
            values = {
                "title": data.get("title"),
                "handle": data.get("handle"),
                "description": data.get("body_html"),
                "vendor": data.get("vendor"),
                "product_type": data.get("product_type"),
                "status": data.get("status"),
                "tags": data.get("tags"),
                "price": to_decimal(variant.get("price")),
                "compare_at_price": to_decimal(variant.get("compare_at_price"), default=None),
                "platform_created_at": parse_shopify_date(data.get("created_at")),
                "platform_updated_at": parse_shopify_date(data.get("updated_at")),
            }
        except (AttributeError, TypeError, ValueError) as e:
            raise ItemReconciliationError(f"Product {data.get('id')!r} could not be mapped: {str(e)}") from e

        return await self._upsert(Product, tenant_id, external_id, values)

    async def resolve_product(
        self, tenant_id: int, line_item: Dict[str, Any], create_if_missing: bool
    ) -> Optional[int]:
        """
        Resolve the product a line item refers to.

        With create_if_missing a minimal product (title, slug handle, price,
        vendor, type) is inserted when none exists. An existing product is
        never overwritten from a line item: its title and price change only
        through product payloads (a products sync or a products/* webhook),
        not through the order line items that reference it. Custom line items
        have no product_id and resolve to None.
        """
        raw_id = line_item.get("product_id")
        if raw_id in (None, ""):
            return None

        external_id = normalize_external_id(raw_id)
        product_id = await self._find_id(Product, tenant_id, external_id)
        if product_id is not None or not create_if_missing:
            return product_id

        title = line_item.get("title")
        stmt = self._insert(Product).values(
            tenant_id=tenant_id,
            external_id=external_id,
            title=title,
            handle=handle_from_title(title),
            price=to_decimal(line_item.get("price")),
            vendor=line_item.get("vendor"),
            product_type=line_item.get("product_type"),
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["tenant_id", "external_id"]).returning(Product.id)
        product_id = (await self.session.execute(stmt)).scalar_one_or_none()

        if product_id is None:
            # A concurrent writer inserted it first
            return await self._find_id(Product, tenant_id, external_id)

        logger.info(f"Created placeholder product {external_id} for tenant {tenant_id} from order line item")
        return product_id

    # --- Orders ---

    async def reconcile_order(
        self,
        tenant_id: int,
        data: Dict[str, Any],
        create_missing_references: bool = False,
        apply_aggregate: bool = False,
    ) -> int:
        """
        Create or update an order and replace its items.

        Args:
            tenant_id: Owning tenant
            data: Shopify order payload
            create_missing_references: Upsert the referenced customer and
                products from the order's fragments instead of looking them up
            apply_aggregate: Add a paid order's total to its customer's spend
                and order count (once per order)

        Returns:
            The internal order id
        """
        try:
            external_id = normalize_external_id(data.get("id"))
            values = self._extract_order_data(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ItemReconciliationError(f"Order {data.get('id')!r} could not be mapped: {str(e)}") from e

        customer_id = await self.resolve_customer(tenant_id, data.get("customer"), create_missing_references)
        if customer_id is not None:
            # An unresolved customer never clears an existing link
            values["customer_id"] = customer_id

        order_id = await self._upsert(Order, tenant_id, external_id, values)

        line_items = data.get("line_items") or []
        item_count = await self._replace_order_items(tenant_id, order_id, line_items, create_missing_references)

        if values["financial_status"] == FINANCIAL_STATUS_PAID:
            if apply_aggregate:
                if customer_id is not None:
                    await self._apply_paid_order(tenant_id, order_id, customer_id, values["total_price"])
            else:
                # The customer snapshot from Shopify already counts this order
                await self._claim_aggregate(tenant_id, order_id)

        logger.debug(f"Reconciled order {external_id} for tenant {tenant_id} with {item_count} items")
        return order_id

    def _extract_order_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        order_number = data.get("order_number")
        return {
            "order_number": str(order_number) if order_number is not None else data.get("name"),
            "total_price": to_decimal(data.get("total_price")),
            "subtotal_price": to_decimal(data.get("subtotal_price")),
            "total_tax": to_decimal(data.get("total_tax")),
            "total_discounts": to_decimal(data.get("total_discounts")),
            "currency": data.get("currency"),
            "financial_status": data.get("financial_status"),
            "fulfillment_status": data.get("fulfillment_status"),
            "tags": data.get("tags"),
            "order_date": parse_shopify_date(data.get("created_at")),
            "processed_at": parse_shopify_date(data.get("processed_at")),
            "cancelled_at": parse_shopify_date(data.get("cancelled_at")),
            "platform_updated_at": parse_shopify_date(data.get("updated_at")),
        }

    async def _replace_order_items(
        self,
        tenant_id: int,
        order_id: int,
        line_items: Iterable[Dict[str, Any]],
        create_missing_references: bool,
    ) -> int:
        """Delete every item of the order, then insert the supplied set in order."""
        await self.session.execute(
            delete(OrderItem)
            .where(OrderItem.order_id == order_id, OrderItem.tenant_id == tenant_id)
            .execution_options(synchronize_session=False)
        )

        rows: List[Dict[str, Any]] = []
        for position, line_item in enumerate(line_items):
            rows.append(
                await self._build_order_item(tenant_id, order_id, position, line_item, create_missing_references)
            )

        if rows:
            await self.session.execute(insert(OrderItem), rows)
        return len(rows)

    async def _build_order_item(
        self,
        tenant_id: int,
        order_id: int,
        position: int,
        line_item: Dict[str, Any],
        create_missing_references: bool,
    ) -> Dict[str, Any]:
        try:
            product_id = await self.resolve_product(tenant_id, line_item, create_missing_references)
            line_item_id = line_item.get("id")
            return {
                "order_id": order_id,
                "tenant_id": tenant_id,
                "product_id": product_id,
                "external_line_item_id": str(line_item_id) if line_item_id is not None else None,
                "position": position,
                "title": line_item.get("title"),
                "quantity": int(line_item.get("quantity") or 0),
                "price": to_decimal(line_item.get("price")),
                "total_discount": to_decimal(line_item.get("total_discount")),
            }
        except (AttributeError, TypeError, ValueError) as e:
            raise ItemReconciliationError(
                f"Line item {line_item.get('id')!r} of order {order_id} could not be mapped: {str(e)}"
            ) from e

    async def _claim_aggregate(self, tenant_id: int, order_id: int) -> bool:
        """
        Flip aggregate_applied from false to true. Returns True only for the
        caller that performed the flip, so concurrent redeliveries of the same
        order cannot both count it.
        """
        result = await self.session.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.tenant_id == tenant_id,
                Order.aggregate_applied.is_(False),
            )
            .values(aggregate_applied=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _apply_paid_order(self, tenant_id: int, order_id: int, customer_id: int, total) -> None:
        if not await self._claim_aggregate(tenant_id, order_id):
            logger.info(f"Order {order_id} already counted towards customer {customer_id}, skipping aggregate")
            return

        await self.session.execute(
            update(Customer)
            .where(Customer.id == customer_id, Customer.tenant_id == tenant_id)
            .values(
                total_spent=Customer.total_spent + total,
                orders_count=Customer.orders_count + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Added paid order {order_id} ({total}) to customer {customer_id}")

    # --- Persistence primitives ---

    def _insert(self, model):
        dialect = self.session.get_bind().dialect.name
        insert_factory = _UPSERT_DIALECTS.get(dialect)
        if insert_factory is None:
            raise ItemReconciliationError(f"Upserts are not supported on the {dialect} dialect")
        return insert_factory(model)

    async def _upsert(self, model, tenant_id: int, external_id: str, values: Dict[str, Any]) -> int:
        """
        INSERT ... ON CONFLICT (tenant_id, external_id) DO UPDATE, returning the id.

        The conflict target includes tenant_id, so a row belonging to another
        tenant with the same external id is never matched.
        """
        stmt = self._insert(model).values(tenant_id=tenant_id, external_id=external_id, **values)
        update_set = {key: stmt.excluded[key] for key in values}
        update_set["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "external_id"],
            set_=update_set,
        ).returning(model.id)

        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def _find_id(self, model, tenant_id: int, external_id: str) -> Optional[int]:
        result = await self.session.execute(
            select(model.id).where(model.tenant_id == tenant_id, model.external_id == external_id)
        )
        return result.scalar_one_or_none()
