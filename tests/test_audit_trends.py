from app.models import AuditHistory, SavedAudit
from app.services.audit_trends import calculate_improvement, round_half_up, summarize_changes


def test_round_half_up_rounds_halves_away_from_even():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4) == 2
    assert round_half_up(-0.5) == 0


def test_calculate_improvement():
    assert calculate_improvement(30, 20) == 50
    assert calculate_improvement(15, 20) == -25
    assert calculate_improvement(1, 3) == -67


def test_calculate_improvement_missing_or_zero_is_none():
    assert calculate_improvement(None, 20) is None
    assert calculate_improvement(30, None) is None
    assert calculate_improvement(30, 0) is None
    assert calculate_improvement(0, 20) is None


def test_summarize_changes_compares_baseline_with_current():
    baseline = AuditHistory(domain="example.com", domain_rating=20, organic_traffic=1000)
    audit = SavedAudit(domain="example.com", slug="example-com", domain_rating=30, organic_traffic=1500)

    changes = summarize_changes(baseline, audit)

    assert changes["domain_rating"].baseline == 20
    assert changes["domain_rating"].current == 30
    assert changes["domain_rating"].absolute == 10
    assert changes["domain_rating"].percent == 50
    assert changes["organic_traffic"].percent == 50
    assert changes["backlinks"].absolute is None


def test_summarize_changes_without_baseline():
    audit = SavedAudit(domain="example.com", slug="example-com", domain_rating=30)

    changes = summarize_changes(None, audit)

    assert changes["domain_rating"].baseline is None
    assert changes["domain_rating"].current == 30
    assert changes["domain_rating"].percent is None
