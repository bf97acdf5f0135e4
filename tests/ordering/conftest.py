import os

import pytest


@pytest.fixture(scope="session")
def _ordering_domain(request):
    """Initialize the ordering domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from ordering.domain import ordering

    ordering.init()
    return ordering


@pytest.fixture(scope="session", autouse=True)
def setup_db(_ordering_domain):
    from ordering.utils.db import drop_db, setup_db

    setup_db(_ordering_domain)

    yield

    drop_db(_ordering_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_ordering_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _ordering_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture()
def ordering_domain(_ordering_domain):
    return _ordering_domain


# ---------------------------------------------------------------------------
# Catalogue seeding
# ---------------------------------------------------------------------------
@pytest.fixture()
def seed_product():
    """Factory fixture: register a product with one variant and return both ids."""
    from ordering.product.registration import AddVariant, RegisterProduct
    from protean import current_domain

    counter = {"n": 0}

    def _seed(price=26.0, stock_qty=10, name="Ethiopia Yirgacheffe", label="250g", weight_grams=250, sku=None):
        counter["n"] += 1
        product_id = current_domain.process(
            RegisterProduct(
                name=name,
                category="africa",
                region="Yirgacheffe",
                roast="Light",
                description="Floral and bright, with notes of jasmine and bergamot.",
            ),
            asynchronous=False,
        )
        variant_id = current_domain.process(
            AddVariant(
                product_id=product_id,
                label=label,
                weight_grams=weight_grams,
                sku=sku or f"CBW-SEED-{counter['n']:03d}",
                price=price,
                stock_qty=stock_qty,
            ),
            asynchronous=False,
        )
        return product_id, variant_id

    return _seed


@pytest.fixture()
def delivery_address():
    return {
        "name": "Layla Haddad",
        "phone": "+971501234567",
        "street": "Al Wasl Road",
        "city": "Dubai",
        "emirate": "Dubai",
        "building": "Villa 12",
    }
