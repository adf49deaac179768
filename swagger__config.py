"""
Swagger/OpenAPI configuration for the Gym Backend API
"""

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,
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
        "title": "Gym Backend API",
        "description": "REST API for gym management: customers, memberships, personal training assignments, invoices and the transaction ledger",
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
        {"name": "Authentication", "description": "Gym registration and staff login"},
        {"name": "Personal Training", "description": "Assignments and their billing"},
        {"name": "Customers", "description": "Customers and memberships"},
        {"name": "Trainers", "description": "Trainer records"},
        {"name": "Billing", "description": "Invoices and transactions"},
        {"name": "Finance", "description": "Revenue metrics and exports"},
        {"name": "Utility", "description": "Health checks"},
    ],
    "definitions": {
        "Error": {
            "type": "object",
            "properties": {
                "success": {"type": "boolean", "example": False},
                "error": {"type": "string"},
            },
        },
        "Assignment": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "customer_id": {"type": "integer"},
                "trainer_id": {"type": "integer"},
                "gym_id": {"type": "integer"},
                "start_date": {"type": "string", "format": "date"},
                "duration": {"type": "integer"},
                "end_date": {"type": "string", "format": "date"},
                "fees": {"type": "number", "format": "float"},
            },
        },
        "Invoice": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "invoice_number": {"type": "string", "example": "INV00001"},
                "amount": {"type": "number", "format": "float"},
                "currency": {"type": "string", "example": "INR"},
                "due_date": {"type": "string", "format": "date-time"},
                "notes": {"type": "string"},
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "description": {"type": "string"},
                            "quantity": {"type": "integer"},
                            "unit_price": {"type": "number"},
                            "amount": {"type": "number"},
                        },
                    },
                },
            },
        },
        "Transaction": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "user_id": {"type": "integer"},
                "invoice_id": {"type": "integer"},
                "transaction_type": {
                    "type": "string",
                    "enum": [
                        "MEMBERSHIP_JOINING",
                        "MEMBERSHIP_RENEWAL",
                        "PERSONAL_TRAINING",
                        "PERSONAL_TRAINING_RENEWAL",
                    ],
                },
                "amount": {"type": "number"},
                "payment_mode": {"type": "string"},
                "status": {"type": "string", "example": "SUCCESS"},
            },
        },
    },
}
