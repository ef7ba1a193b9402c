import pytest
from fastapi import HTTPException

from timeline.models.account import Organization
from timeline.routes.org_routes import org_search, orgs_in_area


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('timeline.routes.org_routes.ensure_database_ready', lambda: None)


@pytest.fixture
def orgs(db, seeded) -> None:
    db.add_all([
        Organization(
            email='runner@example.com',
            name='Blade Runner Barbers',
            type='barbershop',
            address='Tverskaya 1',
            lat=55.75,
            long=37.61,
            verified=True,
        ),
        Organization(email='spa@example.com', name='Blade Spa', type='spa', lat=59.93, long=30.31, verified=True),
        Organization(
            email='hidden@example.com',
            name='Blade Hidden',
            type='barbershop',
            lat=55.76,
            long=37.62,
            verified=False,
        ),
    ])
    db.commit()


def search(db, name=None, type=None, limit=20, offset=0):
    return org_search(name=name, type=type, limit=limit, offset=offset, db=db)


def test_org_search_matches_name_case_insensitively(db, orgs) -> None:
    response = search(db, name='blade')

    assert response.found == 2
    assert [org.name for org in response.orgs] == ['Blade Runner Barbers', 'Blade Spa']


def test_org_search_filters_by_type_and_paginates(db, orgs) -> None:
    by_type = search(db, type='BARBER')
    assert [org.name for org in by_type.orgs] == ['Blade Runner Barbers']
    assert by_type.orgs[0].address == 'Tverskaya 1'

    second_page = search(db, name='blade', limit=1, offset=1)
    assert second_page.found == 2
    assert [org.name for org in second_page.orgs] == ['Blade Spa']


def test_org_search_treats_wildcards_literally(db, orgs) -> None:
    assert search(db, name='%').found == 0


def test_org_search_without_filters_lists_verified_orgs(db, orgs) -> None:
    response = search(db)

    assert response.found == 3
    assert 'Blade Hidden' not in {org.name for org in response.orgs}


def test_orgs_in_area_returns_verified_orgs_inside_the_box(db, orgs) -> None:
    found = orgs_in_area(min_lat=55.0, min_long=37.0, max_lat=56.0, max_long=38.0, db=db)

    assert [(org.name, org.lat, org.long) for org in found] == [('Blade Runner Barbers', 55.75, 37.61)]


def test_orgs_in_area_rejects_inverted_corners(db, orgs) -> None:
    with pytest.raises(HTTPException) as exception_info:
        orgs_in_area(min_lat=56.0, min_long=37.0, max_lat=55.0, max_long=38.0, db=db)

    assert exception_info.value.status_code == 400
