"""
Report Store Tests
"""
from datetime import datetime, timedelta, timezone

import pytest

from medreport import db
from medreport.errors import EmptyContent
from medreport.models import Report
from medreport.services.report_service import list_reports, save_report


class TestSaveReport:

    def test_save_report(self, app, test_user):
        with app.app_context():
            report = save_report(test_user, 'Cholesterol slightly high')
            assert report.id is not None
            assert Report.query.count() == 1

    @pytest.mark.parametrize('content', [None, '', '   \n'])
    def test_blank_content_rejected(self, app, test_user, content):
        with app.app_context():
            with pytest.raises(EmptyContent):
                save_report(test_user, content)
            assert Report.query.count() == 0


class TestListReports:

    def test_empty(self, app, test_user):
        with app.app_context():
            assert list_reports(test_user) == []

    def test_newest_first(self, app, test_user):
        with app.app_context():
            base = datetime(2026, 3, 1, tzinfo=timezone.utc)
            for i, offset in enumerate([2, 0, 5, 1]):
                db.session.add(Report(user_id=test_user, content=f'r{i}', created_at=base + timedelta(hours=offset)))
            db.session.commit()

            reports = list_reports(test_user)
            assert [r.content for r in reports] == ['r2', 'r0', 'r3', 'r1']
            stamps = [r.created_at for r in reports]
            assert stamps == sorted(stamps, reverse=True)

    def test_same_timestamp_falls_back_to_id(self, app, test_user):
        with app.app_context():
            stamp = datetime(2026, 3, 1, tzinfo=timezone.utc)
            first = Report(user_id=test_user, content='first', created_at=stamp)
            second = Report(user_id=test_user, content='second', created_at=stamp)
            db.session.add_all([first, second])
            db.session.commit()

            assert [r.content for r in list_reports(test_user)] == ['second', 'first']

    def test_only_owner_reports(self, app, gate, test_user):
        with app.app_context():
            other = gate.signup('someone-else', 'pw').id
            save_report(test_user, 'mine')
            save_report(other, 'theirs')

            assert [r.content for r in list_reports(test_user)] == ['mine']
            assert [r.content for r in list_reports(other)] == ['theirs']
