import pytest
from checkout.coupons import reset_validator
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield

        # Every test starts from empty stores and an unconfigured validator
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()
    reset_validator()
