from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from treeconf import (
    BeanFactory,
    BeanHelper,
    ConfigManager,
    ConfigurationRuntimeError,
    FileSource,
    HierarchicalConfiguration,
    XMLBeanDeclaration,
)


class Address:
    city: str | None = None
    street: str | None = None


class Person:
    def __init__(self) -> None:
        self.lastName = None
        self.firstName = None
        self.address = None
        self.phones: list[Any] = []


class Phone:
    number = None


class Frozen:
    __slots__ = ()


def _cls(name: str) -> str:
    return f"{__name__}.{name}"


def _person_config() -> HierarchicalConfiguration:
    return HierarchicalConfiguration.from_mapping(
        {
            "personBean": {
                "@config-class": _cls("Person"),
                "@lastName": "Doe",
                "@firstName": "John",
                "address": {"@config-class": _cls("Address"), "@city": "TestCity"},
                "phones": [
                    {"@config-class": _cls("Phone"), "@number": "1"},
                    {"@config-class": _cls("Phone"), "@number": "2"},
                ],
            }
        }
    )


def test_create_bean_with_nested_beans():
    person = BeanHelper().create_bean(XMLBeanDeclaration.from_key(_person_config(), "personBean"))

    assert isinstance(person, Person)
    assert (person.lastName, person.firstName) == ("Doe", "John")
    assert isinstance(person.address, Address)
    assert person.address.city == "TestCity"
    assert [p.number for p in person.phones] == ["1", "2"]


def test_create_bean_from_xml_file(tmp_path: Path):
    config_file = tmp_path / "beans.xml"
    config_file.write_text(
        f"""<config>
  <personBean config-class="{_cls('Person')}" lastName="Doe">
    <address config-class="{_cls('Address')}" city="TestCity" street="21st street 11"/>
  </personBean>
</config>
""",
        encoding="utf-8",
    )
    config = ConfigManager([FileSource(config_file)]).load_hierarchical()

    person = BeanHelper().create_bean(XMLBeanDeclaration.from_key(config, "personBean"))

    assert person.lastName == "Doe"
    assert person.address.street == "21st street 11"


def test_default_class_is_used_without_class_attribute():
    config = HierarchicalConfiguration.from_mapping({"addr": {"@city": "Elsewhere"}})

    bean = BeanHelper().create_bean(XMLBeanDeclaration.from_key(config, "addr"), Address)

    assert isinstance(bean, Address)
    assert bean.city == "Elsewhere"


def test_optional_declaration_with_default_class():
    config = HierarchicalConfiguration()

    bean = BeanHelper().create_bean(
        XMLBeanDeclaration.from_key(config, "missing", optional=True), Address
    )

    assert isinstance(bean, Address)
    assert bean.city is None


def test_missing_class_raises():
    config = HierarchicalConfiguration.from_mapping({"addr": {"@city": "x"}})

    with pytest.raises(ConfigurationRuntimeError):
        BeanHelper().create_bean(XMLBeanDeclaration.from_key(config, "addr"))


def test_unknown_class_raises():
    config = HierarchicalConfiguration.from_mapping(
        {"bean": {"@config-class": _cls("DoesNotExist")}}
    )

    with pytest.raises(ConfigurationRuntimeError):
        BeanHelper().create_bean(XMLBeanDeclaration.from_key(config, "bean"))


def test_unsettable_property_raises():
    config = HierarchicalConfiguration.from_mapping(
        {"bean": {"@config-class": _cls("Frozen"), "@value": "1"}}
    )

    with pytest.raises(ConfigurationRuntimeError):
        BeanHelper().create_bean(XMLBeanDeclaration.from_key(config, "bean"))


class RecordingFactory(BeanFactory):
    def __init__(self) -> None:
        self.calls: list[tuple[Any, Any]] = []

    def create_bean(self, bean_class, declaration, parameter):
        self.calls.append((bean_class, parameter))
        return bean_class()

    @property
    def default_bean_class(self):
        return Phone


def test_named_factory_receives_parameter():
    config = HierarchicalConfiguration.from_mapping(
        {
            "bean": {
                "@config-factory": "recording",
                "@config-factoryParam": "from-declaration",
            },
            "other": {"@config-factory": "recording"},
        }
    )
    helper = BeanHelper()
    factory = RecordingFactory()
    helper.register_bean_factory("recording", factory)

    first = helper.create_bean(XMLBeanDeclaration.from_key(config, "bean"), parameter="ignored")
    second = helper.create_bean(XMLBeanDeclaration.from_key(config, "other"), parameter="argument")

    assert isinstance(first, Phone) and isinstance(second, Phone)
    assert factory.calls == [(Phone, "from-declaration"), (Phone, "argument")]
    assert helper.registered_factory_names() == ["recording"]


def test_unknown_factory_raises():
    config = HierarchicalConfiguration.from_mapping({"bean": {"@config-factory": "nope"}})

    with pytest.raises(ConfigurationRuntimeError):
        BeanHelper().create_bean(XMLBeanDeclaration.from_key(config, "bean"), Address)


def test_deregister_factory():
    helper = BeanHelper()
    factory = RecordingFactory()
    helper.register_bean_factory("f", factory)

    assert helper.deregister_bean_factory("f") is factory
    assert helper.deregister_bean_factory("f") is None
    assert helper.registered_factory_names() == []


def test_register_factory_validates_arguments():
    helper = BeanHelper()

    with pytest.raises(ValueError):
        helper.register_bean_factory("", RecordingFactory())
    with pytest.raises(ValueError):
        helper.register_bean_factory("x", None)  # type: ignore[arg-type]


def test_create_bean_rejects_none():
    with pytest.raises(ValueError):
        BeanHelper().create_bean(None)  # type: ignore[arg-type]
