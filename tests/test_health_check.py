"""
Database health check with bounded retry.
"""
from cellblock.db.session import create_db_engine
from cellblock.services.background import ConnectionStatus, HealthCheckService


class TestHealthCheck:
    def test_connected(self, container):
        report = container.health.check()
        assert report.status == ConnectionStatus.CONNECTED
        assert report.is_healthy
        assert report.attempts == 1
        assert report.latency_ms is not None
        assert container.health.last_report is report

    def test_disconnected_after_retries(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        sleeps = []
        service = HealthCheckService(engine, max_retries=3, delay_seconds=0.5, sleep=sleeps.append)

        report = service.check()
        assert report.status == ConnectionStatus.DISCONNECTED
        assert report.attempts == 3
        assert report.error
        assert sleeps == [0.5, 0.5]
        assert report.to_dict()["status"] == "Disconnected"

    def test_overrides(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'missing' / 'x.db'}")
        sleeps = []
        service = HealthCheckService(engine, sleep=sleeps.append)
        report = service.check(max_retries=1, delay=2.0)
        assert report.attempts == 1
        assert sleeps == []

    def test_connection_status(self, container):
        assert container.health.connection_status() == ConnectionStatus.CONNECTED
