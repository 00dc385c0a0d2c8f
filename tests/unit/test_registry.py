from __future__ import annotations

from dataclasses import dataclass

import pytest

from sapphire_py import (
    ClassMetadata,
    FieldMetadata,
    MappingDefinitionError,
    MissingMappingError,
    TypeNotFoundError,
    dynamo_class,
    dynamo_embedded,
    from_item,
    register,
    sapphire_field,
    table_name_of,
    to_item,
)
from sapphire_py.registry import class_metadata, mapped_fields, require_mapping


@dynamo_class("orders")
@dataclass
class Order:
    id: str = sapphire_field()
    total: int = sapphire_field(default=0)


@dynamo_embedded
@dataclass
class Money:
    amount: int = sapphire_field()


class Unmapped:
    pass


class ThirdPartyPoint:
    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    x: int
    y: int


class ThirdPartyTag:
    label: str


def test_table_name_of_accepts_class_instance_and_identifier() -> None:
    assert table_name_of(Order) == "orders"
    assert table_name_of(Order(id="o1")) == "orders"
    assert table_name_of(f"{Order.__module__}.Order") == "orders"
    assert table_name_of(f"{Order.__module__}:Order") == "orders"


def test_table_name_of_requires_table_mapping() -> None:
    with pytest.raises(MissingMappingError, match="no table mapping"):
        table_name_of(Money)
    with pytest.raises(MissingMappingError):
        table_name_of(Unmapped())
    with pytest.raises(TypeNotFoundError):
        table_name_of("no_such_module_here.Order")


def test_require_mapping_accepts_either_role() -> None:
    assert require_mapping(Order).table_name == "orders"
    assert require_mapping(Money).embeddable is True
    with pytest.raises(MissingMappingError, match="not marked as embeddable"):
        require_mapping(Unmapped)


def test_mapped_fields_are_resolved_once_per_type() -> None:
    first = mapped_fields(Order)
    assert [f.name for f in first] == ["id", "total"]
    assert mapped_fields(Order) is first


def test_register_maps_a_type_without_decorators() -> None:
    register(ThirdPartyPoint, table_name="points", fields={"x": FieldMetadata(), "y": FieldMetadata()})

    assert class_metadata(ThirdPartyPoint) == ClassMetadata(table_name="points")
    assert to_item(ThirdPartyPoint(1, 2)) == {"x": {"N": "1"}, "y": {"N": "2"}}

    got = from_item({"x": {"N": "3"}, "y": {"N": "4"}}, ThirdPartyPoint)
    assert (got.x, got.y) == (3, 4)


def test_register_after_first_use_is_rejected() -> None:
    register(ThirdPartyTag, embeddable=True, fields={"label": FieldMetadata()})
    mapped_fields(ThirdPartyTag)

    with pytest.raises(MappingDefinitionError, match="before first use"):
        register(ThirdPartyTag, fields={"label": FieldMetadata(binary=True)})


def test_register_rejects_conflicting_class_role() -> None:
    with pytest.raises(MappingDefinitionError, match="already carries"):
        register(Money, table_name="money")


class ThirdPartyShape:
    kind: str


class ThirdPartyCircle(ThirdPartyShape):
    radius: int


def test_register_base_after_subclass_use_is_rejected() -> None:
    register(ThirdPartyCircle, table_name="circles", fields={"radius": FieldMetadata()})
    assert [f.name for f in mapped_fields(ThirdPartyCircle)] == ["radius"]

    with pytest.raises(MappingDefinitionError, match="in use by ThirdPartyCircle"):
        register(ThirdPartyShape, fields={"kind": FieldMetadata()})
    assert [f.name for f in mapped_fields(ThirdPartyCircle)] == ["radius"]
