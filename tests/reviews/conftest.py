import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def reviews_bed():
    from reviews.domain import reviews
    from reviews.utils.db import drop_db, setup_db

    bed = DomainFixture(reviews)
    bed.setup()
    setup_db(reviews)
    yield bed
    drop_db(reviews)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(reviews_bed):
    with reviews_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def oracle():
    """In-memory booking oracle, swapped in for every test."""
    from reviews.booking import reset_oracle, set_oracle
    from reviews.booking.fake_adapter import InMemoryBookingOracle

    fake = InMemoryBookingOracle()
    set_oracle(fake)
    yield fake
    reset_oracle()
