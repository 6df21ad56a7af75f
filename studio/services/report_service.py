from sqlalchemy import func, select

from ..extensions import db
from ..models import APPOINTMENT_STATUSES, Appointment, Client, Product, Service


def build_summary(user_id: int) -> dict:
    """Figures shown on the reports screen, all scoped to one studio user."""
    status_rows = db.session.execute(
        select(Appointment.status, func.count(Appointment.id))
        .where(Appointment.user_id == user_id)
        .group_by(Appointment.status)
    ).all()
    by_status = {status: 0 for status in APPOINTMENT_STATUSES}
    by_status.update({status: count for status, count in status_rows})

    service_rows = db.session.execute(
        select(
            Service.id,
            Service.name,
            func.count(Appointment.id),
            func.coalesce(func.sum(Service.price), 0),
        )
        .join(Appointment, Appointment.service_id == Service.id)
        .where(Service.user_id == user_id, Appointment.status == "done")
        .group_by(Service.id, Service.name)
        .order_by(func.count(Appointment.id).desc(), Service.name)
    ).all()
    per_service = [
        {
            "service_id": service_id,
            "name": name,
            "completed": completed,
            "revenue": round(float(revenue), 2),
        }
        for service_id, name, completed, revenue in service_rows
    ]

    total_clients = db.session.scalar(
        select(func.count(Client.id)).where(Client.user_id == user_id)
    )
    low_stock = db.session.scalar(
        select(func.count(Product.id)).where(
            Product.user_id == user_id, Product.quantity <= Product.min_quantity
        )
    )

    return {
        "appointments_by_status": by_status,
        "completed_appointments": by_status["done"],
        "total_revenue": round(sum(item["revenue"] for item in per_service), 2),
        "services": per_service,
        "total_clients": total_clients or 0,
        "low_stock_products": low_stock or 0,
    }
