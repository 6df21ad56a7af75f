"""
Swagger/OpenAPI configuration for the Manicure Studio API
"""

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: rule.rule.startswith("/api"),
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/api/docs",
}

SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Manicure Studio API",
        "description": "Appointments, clients with loyalty points, service catalog, inventory, reports and push reminders",
        "version": "1.0.0",
    },
    "host": "",
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": 'JWT Authorization header using the Bearer scheme. Example: "Authorization: Bearer {token}"',
        }
    },
    "security": [{"Bearer": []}],
    "tags": [
        {"name": "Authentication", "description": "Register, log in, current user"},
        {"name": "Clients", "description": "Client records and history"},
        {"name": "Services", "description": "Service catalog"},
        {"name": "Products", "description": "Inventory and restock alerts"},
        {"name": "Appointments", "description": "Scheduling and status lifecycle"},
        {"name": "Reports", "description": "Studio report summary"},
        {"name": "Notifications", "description": "Web Push subscriptions"},
    ],
    "definitions": {
        "Error": {
            "type": "object",
            "properties": {
                "status": {"type": "string", "example": "error"},
                "message": {"type": "string"},
                "details": {"type": "string"},
            },
        },
        "Client": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string"},
                "phone": {"type": "string"},
                "email": {"type": "string"},
                "instagram": {"type": "string"},
                "points": {"type": "integer"},
                "allergies": {"type": "string"},
                "preferences": {"type": "string"},
            },
        },
        "Appointment": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "client_id": {"type": "integer"},
                "service_id": {"type": "integer"},
                "date_time": {"type": "string", "format": "date-time"},
                "status": {
                    "type": "string",
                    "enum": ["pending", "confirmed", "done", "cancelled"],
                },
                "notes": {"type": "string"},
            },
        },
    },
}
