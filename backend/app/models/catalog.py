from __future__ import annotations

from ..extensions import db


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.String(255), nullable=True)

    products = db.relationship("Product", back_populates="category", lazy=True, order_by="Product.id.desc()")

    def to_dict(self, include_products: bool = True) -> dict:
        data = {
            "category_id": self.id,
            "name": self.name,
            "description": self.description,
        }
        if include_products:
            data["products"] = [p.to_summary() for p in self.products]
        return data


class Supplier(db.Model):
    __tablename__ = "suppliers"

    rut = db.Column(db.String(20), primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(100), nullable=True)

    products = db.relationship("Product", back_populates="supplier", lazy=True, order_by="Product.id.desc()")

    def to_dict(self, include_products: bool = True) -> dict:
        data = {
            "rut": self.rut,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
        }
        if include_products:
            data["products"] = [p.to_summary() for p in self.products]
        return data


class Product(db.Model):
    """
    Catalog item.

    price is in whole currency units. stock NULL means unlimited; when set
    it never goes below zero (orders decrement it conditionally).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock IS NULL OR stock >= 0", name="ck_products_stock_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(100), nullable=False, unique=True)
    price = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(255), nullable=True)
    status = db.Column(db.Boolean, nullable=False, default=True)

    rut_supplier = db.Column(db.String(20), db.ForeignKey("suppliers.rut"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    supplier = db.relationship("Supplier", back_populates="products")
    category = db.relationship("Category", back_populates="products")

    def to_summary(self) -> dict:
        return {
            "product_id": self.id,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "status": self.status,
        }

    def to_dict(self) -> dict:
        return {
            "product_id": self.id,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "description": self.description,
            "image_url": self.image_url,
            "status": self.status,
            "rut_supplier": self.rut_supplier,
            "category_id": self.category_id,
            "supplier": self.supplier.to_dict(include_products=False) if self.supplier else None,
            "category": self.category.to_dict(include_products=False) if self.category else None,
        }
