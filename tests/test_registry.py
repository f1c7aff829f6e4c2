import pytest

from arcstream.registry import InterfaceFactory, RegistryError


class Plain:
    def __init__(self, concurrency, group_id):
        self.concurrency = concurrency
        self.group_id = group_id


class Configurable(Plain):
    def __init__(self, concurrency, group_id):
        super().__init__(concurrency, group_id)
        self.params = None

    def config(self, params):
        self.params = params


def test_create_passes_arguments():
    factory = InterfaceFactory()
    factory.register("plain", Plain)
    component = factory.create("plain", 4, "group-a")
    assert (component.concurrency, component.group_id) == (4, "group-a")


def test_create_configures_with_params():
    factory = InterfaceFactory()
    factory.register("conf", Configurable)
    component = factory.create("conf", 1, "g", {"mqaddr": "localhost:9092"})
    assert component.params == {"mqaddr": "localhost:9092"}


def test_empty_params_skip_config():
    factory = InterfaceFactory()
    factory.register("conf", Configurable)
    component = factory.create("conf", 1, "g", {})
    assert component.params is None
    assert factory.create("conf", 2, "h").concurrency == 2


def test_unknown_name_raises():
    factory = InterfaceFactory()
    with pytest.raises(RegistryError, match="interface name not found: missing"):
        factory.create("missing", 1, "g")


def test_params_for_unconfigurable_raise():
    factory = InterfaceFactory()
    factory.register("plain", Plain)
    with pytest.raises(RegistryError, match="interface not configurable: plain"):
        factory.create("plain", 1, "g", {"key": "value"})


def test_register_replaces_creator():
    factory = InterfaceFactory()
    factory.register("x", Plain)
    factory.register("x", Configurable)
    component = factory.create("x", 3, "g", {"key": "value"})
    assert component.params == {"key": "value"}
    assert component.concurrency == 3