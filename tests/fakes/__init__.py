from tests.fakes.fake_storage import FakeStorage

__all__ = ["FakeStorage"]
