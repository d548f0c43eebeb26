"""
Publish Scheduler Tests
=======================

Invariantes testeadas:
1. Un tick publica todas las entries en orden de documento
2. Fallos por entry quedan aislados (overflow, publish False, excepción)
3. Cada tick usa un solo snapshot (reload a mitad de tick no se mezcla)
4. Después de stop() no empieza ningún tick nuevo
5. Documento inválido no cambia lo que publica el próximo tick
"""
import time

import pytest

from mqtt_simulator.payload import Bool, Integer, IntWidth, PublishFailure, TopicEntry
from mqtt_simulator.data import PublishScheduler
from mqtt_simulator.topics import FileWatcher, ReloadController, TopicRegistry

from mqtt_simulator.tests.fakes import FakePublisher


@pytest.mark.unit
class TestTick:

    def test_interval_must_be_positive(self, fake_publisher):
        with pytest.raises(ValueError):
            PublishScheduler(TopicRegistry(), fake_publisher, interval=0)

    def test_publishes_every_entry_in_order(self, fake_publisher):
        registry = TopicRegistry([
            TopicEntry("b", Bool(True)),
            TopicEntry("a", Integer(2, IntWidth.W16)),
            TopicEntry("b", Bool(False)),
        ])
        report = PublishScheduler(registry, fake_publisher).tick()

        assert fake_publisher.published == [
            ("b", b"\x01"),
            ("a", b"\x00\x02"),
            ("b", b"\x00"),
        ]
        assert report.attempted == 3
        assert report.published == 3
        assert report.failed == 0
        assert report.version == 1

    def test_empty_registry(self, fake_publisher):
        report = PublishScheduler(TopicRegistry(), fake_publisher).tick()
        assert report.attempted == 0
        assert fake_publisher.published == []

    def test_overflow_is_isolated(self, fake_publisher):
        """
        Invariante: una entry no codificable no impide publicar las demás.
        """
        registry = TopicRegistry([
            TopicEntry("bad", Integer(300, IntWidth.W8)),
            TopicEntry("good", Bool(True)),
        ])
        report = PublishScheduler(registry, fake_publisher).tick()

        assert fake_publisher.published == [("good", b"\x01")]
        assert report.failures[0][0] == "bad"
        assert report.failures[0][1].startswith("encoding overflow")

    def test_publish_failure_is_isolated(self):
        publisher = FakePublisher(fail_topics={"x"}, raise_topics={"y"})
        registry = TopicRegistry([
            TopicEntry("x", Bool(True)),
            TopicEntry("y", Bool(True)),
            TopicEntry("z", Bool(True)),
        ])
        scheduler = PublishScheduler(registry, publisher)
        report = scheduler.tick()

        assert publisher.published == [("z", b"\x01")]
        assert report.failures == [("x", "publish failed"), ("y", "publish failed")]
        assert scheduler.get_stats()["entry_failures"] == 2

    def test_tick_uses_one_snapshot(self):
        """
        Invariante: un swap durante el tick no afecta al tick en curso.
        """
        registry = TopicRegistry([TopicEntry("a", Bool(True)), TopicEntry("b", Bool(True))])

        class SwappingPublisher(FakePublisher):
            def publish(self, topic, payload):
                registry.swap([TopicEntry("new", Bool(False))])
                return super().publish(topic, payload)

        publisher = SwappingPublisher()
        report = PublishScheduler(registry, publisher).tick()

        assert [t for t, _ in publisher.published] == ["a", "b"]
        assert report.version == 1

    def test_stats_accumulate(self, fake_publisher):
        registry = TopicRegistry([TopicEntry("a", Bool(True))])
        scheduler = PublishScheduler(registry, fake_publisher, interval=2.0)
        scheduler.tick()
        scheduler.tick()

        stats = scheduler.get_stats()
        assert stats["ticks"] == 2
        assert stats["messages_published"] == 2
        assert stats["interval_s"] == 2.0


@pytest.mark.integration
class TestSchedulerThread:

    def test_first_tick_is_immediate_and_repeats(self, fake_publisher):
        registry = TopicRegistry([TopicEntry("a", Bool(True))])
        scheduler = PublishScheduler(registry, fake_publisher, interval=0.05)
        scheduler.start()
        try:
            time.sleep(0.3)
        finally:
            scheduler.stop()

        assert len(fake_publisher.published) >= 3
        assert not scheduler.is_alive

    def test_no_tick_after_stop(self, fake_publisher):
        registry = TopicRegistry([TopicEntry("a", Bool(True))])
        scheduler = PublishScheduler(registry, fake_publisher, interval=0.02)
        scheduler.start()
        time.sleep(0.1)
        scheduler.stop()

        count = len(fake_publisher.published)
        time.sleep(0.1)
        assert len(fake_publisher.published) == count

    def test_invalid_edit_keeps_previous_payloads(self, write_document):
        """
        Invariante: un error de sintaxis en el documento deja los valores
        publicados sin cambios en el próximo tick.
        """
        path = write_document([{"topic": "t", "data": {"value": 7, "width": "8"}}])
        registry = TopicRegistry.from_path(path)
        publisher = FakePublisher()
        scheduler = PublishScheduler(registry, publisher)
        controller = ReloadController(registry, FileWatcher(path, poll_interval=0.01, debounce=0))

        scheduler.tick()
        write_document('[{"topic": "t", "data": {"value": 8, "width": ', raw=True)
        assert controller.reload_now() is False
        scheduler.tick()

        assert publisher.payloads("t") == [b"\x07", b"\x07"]

    def test_valid_edit_is_published_next_tick(self, write_document):
        path = write_document([{"topic": "t", "data": {"value": 7, "width": "8"}}])
        registry = TopicRegistry.from_path(path)
        publisher = FakePublisher()
        scheduler = PublishScheduler(registry, publisher)
        controller = ReloadController(registry, FileWatcher(path))

        scheduler.tick()
        write_document([{"topic": "t", "data": {"value": 8, "width": "8"}}, {"topic": "u", "data": True}])
        assert controller.reload_now() is True
        report = scheduler.tick()

        assert publisher.payloads("t") == [b"\x07", b"\x08"]
        assert publisher.payloads("u") == [b"\x01"]
        assert report.version == 2


@pytest.mark.unit
class TestPublishFailureReason:

    def test_publish_failure_reason_is_reported(self, fake_publisher):
        class RejectingPublisher(FakePublisher):
            def publish(self, topic, payload):
                raise PublishFailure("payload too large for broker")

        registry = TopicRegistry([TopicEntry("big", Bool(True))])
        report = PublishScheduler(registry, RejectingPublisher()).tick()

        assert report.failures == [("big", "publish failed: payload too large for broker")]
