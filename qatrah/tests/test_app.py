from qatrah.app.main import app


def test_app_title():
    assert app.title == "Qatrah API"


def test_router_tags_present():
    tags = {tag for route in app.routes for tag in getattr(route, "tags", [])}
    assert {
        "users",
        "blood-banks",
        "campaigns",
        "blood-requests",
        "donations",
        "notifications",
        "audit",
    }.issubset(tags)
