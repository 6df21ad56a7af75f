from ..models import Appointment, Client, Product, Service, User
from .validators import format_datetime


def serialize_user(user: User) -> dict:
    return {"id": user.id, "email": user.email}


def serialize_client(client: Client) -> dict:
    return {
        "id": client.id,
        "user_id": client.user_id,
        "name": client.name,
        "phone": client.phone,
        "email": client.email,
        "instagram": client.instagram,
        "points": client.points,
        "allergies": client.allergies,
        "preferences": client.preferences,
    }


def serialize_service(service: Service) -> dict:
    return {
        "id": service.id,
        "user_id": service.user_id,
        "name": service.name,
        "description": service.description,
        "price": float(service.price),
        "duration": service.duration,
    }


def serialize_product(product: Product) -> dict:
    return {
        "id": product.id,
        "user_id": product.user_id,
        "name": product.name,
        "brand": product.brand,
        "category": product.category,
        "color_hex": product.color_hex,
        "quantity": product.quantity,
        "min_quantity": product.min_quantity,
        "needs_restock": product.needs_restock,
    }


def serialize_appointment(appointment: Appointment, with_details: bool = False) -> dict:
    data = {
        "id": appointment.id,
        "user_id": appointment.user_id,
        "client_id": appointment.client_id,
        "service_id": appointment.service_id,
        "date_time": format_datetime(appointment.date_time),
        "status": appointment.status,
        "notes": appointment.notes,
    }
    if with_details:
        data["client"] = serialize_client(appointment.client)
        data["service"] = serialize_service(appointment.service)
    return data
