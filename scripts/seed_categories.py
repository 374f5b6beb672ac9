"""Seed the default product categories."""

from app import create_app
from models import db
from models.category import Category

DEFAULT_CATEGORIES = (
    "Cakes",
    "Cookies",
    "Breads",
    "Cupcakes",
    "Pastries",
    "Brownies",
    "Desserts",
)


def main() -> None:
    app = create_app()
    with app.app_context():
        existing = {category.name for category in Category.query.all()}
        created = [name for name in DEFAULT_CATEGORIES if name not in existing]
        for name in created:
            db.session.add(Category(name=name))
        db.session.commit()
        print(f"Categories created: {len(created)}; already present: {len(existing)}")


if __name__ == "__main__":
    main()
