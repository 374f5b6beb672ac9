"""Dashboard counts and sales series for admins and bakers."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from sqlalchemy import func, select

from models import db
from models.baker_profile import BakerProfile
from models.order import Order, OrderItem
from models.product import Product
from models.user import User

WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
YEARS_SHOWN = 5


def _series_start(now: datetime) -> datetime:
    """Earliest timestamp any of the three series can include."""

    return datetime(now.year - (YEARS_SHOWN - 1), 1, 1)


def sales_series(entries: Iterable[tuple[datetime, Decimal]], now: datetime) -> dict:
    """Bucket ``(created_at, amount)`` pairs into weekly, monthly and yearly sales.

    * weekly: the last 7 days keyed by day of week, Sun..Sat;
    * monthly: calendar months of the current year;
    * yearly: the current year and the four before it.
    """

    weekly = dict.fromkeys(range(7), Decimal("0"))
    monthly = dict.fromkeys(range(1, 13), Decimal("0"))
    yearly = dict.fromkeys(range(now.year - YEARS_SHOWN + 1, now.year + 1), Decimal("0"))
    week_start = now - timedelta(days=7)

    for created_at, amount in entries:
        amount = Decimal(amount or 0)
        if created_at >= week_start:
            # Python weeks start on Monday=0; the series starts on Sunday.
            weekly[(created_at.weekday() + 1) % 7] += amount
        if created_at.year == now.year:
            monthly[created_at.month] += amount
        if created_at.year in yearly:
            yearly[created_at.year] += amount

    return {
        "weekly": [
            {"period": WEEKDAYS[day], "sales": float(total)} for day, total in weekly.items()
        ],
        "monthly": [
            {"period": MONTHS[month - 1], "sales": float(total)}
            for month, total in monthly.items()
        ],
        "yearly": [
            {"period": str(year), "sales": float(total)} for year, total in yearly.items()
        ],
    }


def admin_dashboard(now: datetime) -> dict:
    paid = Order.query.filter(Order.payment_status == "completed")
    revenue = paid.with_entities(func.coalesce(func.sum(Order.total_amount), 0)).scalar()
    entries = paid.filter(Order.created_at >= _series_start(now)).with_entities(
        Order.created_at, Order.total_amount
    )

    return {
        "total_users": User.query.filter_by(role="user").count(),
        "total_bakers": User.query.filter_by(role="baker").count(),
        "pending_verifications": BakerProfile.query.filter_by(
            verification_status="pending"
        ).count(),
        "total_orders": Order.query.count(),
        "total_revenue": float(revenue or 0),
        "sales_data": sales_series(entries.all(), now),
    }


def baker_dashboard(profile: BakerProfile, now: datetime) -> dict:
    baker_id = profile.user_id
    line_total = OrderItem.price * OrderItem.quantity
    baker_orders = (
        db.session.query(Order.id)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .filter(OrderItem.baker_id == baker_id)
        .distinct()
    )

    revenue = (
        db.session.query(func.coalesce(func.sum(line_total), 0))
        .select_from(OrderItem)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(OrderItem.baker_id == baker_id, Order.payment_status == "completed")
        .scalar()
    )
    entries = (
        db.session.query(Order.created_at, line_total)
        .select_from(OrderItem)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(
            OrderItem.baker_id == baker_id,
            Order.payment_status == "completed",
            Order.created_at >= _series_start(now),
        )
        .all()
    )
    recent = (
        Order.query.filter(
            Order.id.in_(
                select(OrderItem.order_id).where(OrderItem.baker_id == baker_id)
            )
        )
        .order_by(Order.created_at.desc())
        .limit(5)
        .all()
    )

    return {
        "verification_status": profile.verification_status,
        "total_products": Product.query.filter_by(baker_id=baker_id).count(),
        "total_orders": baker_orders.count(),
        "pending_orders": baker_orders.filter(Order.status == "pending").count(),
        "total_revenue": float(revenue or 0),
        "recent_orders": [
            order.to_dict(items=order.items_for_baker(baker_id), include_customer=True)
            for order in recent
        ],
        "sales_data": sales_series(entries, now),
    }
