"""
Tests for the read-only views: applications, job searches, analytics, dashboard.
"""
from datetime import timedelta

import pytest

from jobhunter.api.routes.analytics import weekly_applications
from jobhunter.core.timeutils import utcnow
from jobhunter.db.models.email_application import EmailApplication
from jobhunter.db.models.job_search import JobSearch
from jobhunter.db.models.user import User


@pytest.fixture
def history(db, test_user):
    now = utcnow()
    other = User(id="other-user", email="other@example.com")
    db.add(other)
    db.add_all([
        EmailApplication(
            user_id=test_user.id, job_title="Backend Engineer", company_name="Acme",
            company_email="jobs@acme.example", email_subject="Hello", sent_at=now - timedelta(days=1),
        ),
        EmailApplication(
            user_id=test_user.id, job_title="Data Engineer", company_name="Globex",
            company_email="hr@globex.example", email_subject="Hi", sent_at=now - timedelta(days=15),
        ),
        EmailApplication(
            user_id="other-user", job_title="Designer", company_name="Initech",
            company_email="hr@initech.example", sent_at=now,
        ),
        JobSearch(
            user_id=test_user.id, linkedin_url="https://linkedin.com/jobs/search?k=python",
            status="completed", total_jobs_found=120,
            results=[{"title": "Backend Engineer", "company": "Acme"}],
            created_at=now - timedelta(days=2),
        ),
        JobSearch(
            user_id=test_user.id, linkedin_url="https://linkedin.com/jobs/search?k=go",
            status="failed", total_jobs_found=40, error_message="scraper timeout",
            created_at=now - timedelta(days=1),
        ),
        JobSearch(
            user_id="other-user", linkedin_url="https://linkedin.com/jobs/search?k=ux",
            status="completed", total_jobs_found=999,
        ),
    ])
    db.commit()


def test_applications_are_scoped_and_newest_first(auth_client, history):
    response = auth_client.get("/api/email-applications")
    assert response.status_code == 200
    titles = [a["jobTitle"] for a in response.json()]
    assert titles == ["Backend Engineer", "Data Engineer"]


def test_applications_alias(auth_client, history):
    assert auth_client.get("/api/applications").json() == auth_client.get("/api/email-applications").json()


def test_views_require_session(client):
    for path in ("/api/email-applications", "/api/job-searches", "/api/analytics/stats", "/api/dashboard/stats"):
        assert client.get(path).status_code == 401


def test_job_searches_list_and_detail(auth_client, db, test_user, history):
    searches = auth_client.get("/api/job-searches").json()
    assert [s["status"] for s in searches] == ["failed", "completed"]
    assert "results" not in searches[0]

    completed = searches[1]
    detail = auth_client.get(f"/api/job-searches/{completed['id']}").json()
    assert detail["results"] == [{"title": "Backend Engineer", "company": "Acme"}]


def test_job_search_of_other_user_is_not_found(auth_client, db, history):
    foreign = db.query(JobSearch).filter(JobSearch.user_id == "other-user").one()
    response = auth_client.get(f"/api/job-searches/{foreign.id}")
    assert response.status_code == 404
    assert response.json() == {"error": "Job search not found"}


def test_analytics_stats(auth_client, history):
    stats = auth_client.get("/api/analytics/stats").json()
    assert stats["totalApplications"] == 2
    assert stats["totalJobsScraped"] == 120
    assert stats["responseRate"] == 0
    assert len(stats["weeklyApplications"]) == 8
    assert sum(w["count"] for w in stats["weeklyApplications"]) == 2


def test_dashboard_stats(auth_client, history):
    stats = auth_client.get("/api/dashboard/stats").json()
    assert stats["totalApplicationsSent"] == 2
    assert stats["totalJobsScraped"] == 120
    assert len(stats["recentSearches"]) == 2


def test_stats_for_new_user(auth_client):
    stats = auth_client.get("/api/dashboard/stats").json()
    assert stats == {"totalJobsScraped": 0, "totalApplicationsSent": 0, "recentSearches": []}


def test_weekly_applications_buckets():
    now = utcnow()
    buckets = weekly_applications([now, now, now - timedelta(weeks=3), now - timedelta(weeks=20)], now)

    assert len(buckets) == 8
    assert buckets[-1]["count"] == 2
    assert buckets[-4]["count"] == 1
    assert sum(b["count"] for b in buckets) == 3
    assert buckets == sorted(buckets, key=lambda b: b["week"])
