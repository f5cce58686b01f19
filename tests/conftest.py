import pytest

from intake_rulesets.catalog import SectionCatalog


@pytest.fixture(scope="session")
def catalog():
    """The shipped v1 section catalog, loaded once per test run."""
    cat = SectionCatalog()
    cat.load()
    return cat
