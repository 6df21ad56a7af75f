# Product inventory with restock alerts
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ...errors import NotFoundError, StudioError, ValidationError, error_response
from ...extensions import db
from ...models import Product
from ...utils.ownership import get_owned
from ...utils.serializers import serialize_product
from ...utils.tokens import token_required
from ...utils.validators import parse_product

products_bp = Blueprint("products", __name__, url_prefix="/api/produtos")


def _get_product_or_404(product_id):
    product = get_owned(Product, product_id, g.user_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


@products_bp.route("", methods=["GET"])
@token_required
def list_products():
    """
    List products
    ---
    tags:
      - Products
    parameters:
      - in: query
        name: low_stock
        type: boolean
        required: false
        description: only products whose quantity is at or below the minimum
    responses:
      200:
        description: Array of products, each with a needs_restock flag
    """
    try:
        stmt = select(Product).where(Product.user_id == g.user_id)
        if request.args.get("low_stock", "").lower() in ("1", "true", "yes"):
            stmt = stmt.where(Product.quantity <= Product.min_quantity)
        products = db.session.scalars(stmt.order_by(Product.name)).all()
        return jsonify([serialize_product(p) for p in products])

    except Exception as e:
        current_app.logger.exception("Error fetching products")
        return jsonify({"status": "error", "message": "Failed to fetch products", "details": str(e)}), 500


@products_bp.route("/<int:product_id>", methods=["GET"])
@token_required
def get_product(product_id):
    try:
        return jsonify(serialize_product(_get_product_or_404(product_id)))

    except StudioError as e:
        return error_response(e)


@products_bp.route("", methods=["POST"])
@token_required
def create_product():
    try:
        patch = parse_product(request.get_json(silent=True))
        product = Product(user_id=g.user_id, **patch.as_values())
        db.session.add(product)
        db.session.commit()
        return jsonify(serialize_product(product)), 201

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Error creating product")
        return jsonify({"status": "error", "message": "Failed to create product", "details": str(e)}), 500


@products_bp.route("/<int:product_id>", methods=["PATCH"])
@token_required
def update_product(product_id):
    try:
        patch = parse_product(request.get_json(silent=True), partial=True)
        _get_product_or_404(product_id)
        if patch.is_empty():
            raise ValidationError("No fields to update")

        db.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.user_id == g.user_id)
            .values(**patch.as_values())
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

        return jsonify(serialize_product(_get_product_or_404(product_id)))

    except StudioError as e:
        db.session.rollback()
        return error_response(e)

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": "Database integrity error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error updating product {product_id}")
        return jsonify({"status": "error", "message": "Failed to update product", "details": str(e)}), 500


@products_bp.route("/<int:product_id>", methods=["DELETE"])
@token_required
def delete_product(product_id):
    try:
        product = _get_product_or_404(product_id)
        db.session.delete(product)
        db.session.commit()
        return "", 204

    except StudioError as e:
        return error_response(e)

    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error deleting product {product_id}")
        return jsonify({"status": "error", "message": "Failed to delete product", "details": str(e)}), 500
