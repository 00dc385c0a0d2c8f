from __future__ import annotations

import pytest

from sapphire_py import (
    ArrayKind,
    FieldMetadata,
    ValidationError,
    from_item,
    parse_mapping_document,
    register_mapping_document,
    table_name_of,
    to_item,
)
from sapphire_py.registry import class_metadata, is_embeddable, mapped_fields


class Customer:
    id: str
    photo: bytes
    tags: list[str]
    address: Address

    def __init__(self, id: str, photo: bytes, tags: list[str], address: Address) -> None:
        self.id = id
        self.photo = photo
        self.tags = tags
        self.address = address


class Address:
    city: str

    def __init__(self, city: str) -> None:
        self.city = city


class Invoice:
    id: str
    lines: list


class TypeTagged:
    values: list[int]


def _doc(body: str) -> str:
    return body.replace("MODULE", __name__)


def test_parse_and_register_mapping_document() -> None:
    raw = _doc(
        """
mapping_version: "0.1"
types:
  - type: MODULE.Customer
    table: customers
    fields:
      id: {}
      photo: {binary: true}
      tags: {array_kind: SS}
      address:
  - type: MODULE.Address
    embeddable: true
    fields:
      city: {}
"""
    )

    doc = parse_mapping_document(raw)
    assert register_mapping_document(doc) == [Customer, Address]

    assert table_name_of(Customer) == "customers"
    assert is_embeddable(Address)
    assert [f.name for f in mapped_fields(Customer)] == ["id", "photo", "tags", "address"]

    customer = Customer(id="c1", photo=b"\x01", tags=["a", "b"], address=Address(city="Oslo"))
    item = to_item(customer)
    assert item == {
        "id": {"S": "c1"},
        "photo": {"B": b"\x01"},
        "tags": {"SS": ["a", "b"]},
        "address": {"M": {"city": {"S": "Oslo"}}},
    }

    back = from_item(item, Customer)
    assert (back.id, back.photo, back.tags, back.address.city) == ("c1", b"\x01", ["a", "b"], "Oslo")


def test_array_kind_accepts_member_name() -> None:
    doc = parse_mapping_document(
        _doc(
            """
mapping_version: "0.1"
types:
  - type: MODULE.Invoice
    table: invoices
    fields:
      id: {}
      lines: {array_kind: MIXED_LIST}
"""
        )
    )
    register_mapping_document(doc)

    assert class_metadata(Invoice) is not None
    lines = next(f for f in mapped_fields(Invoice) if f.name == "lines")
    assert lines.metadata == FieldMetadata(array_kind=ArrayKind.MIXED_LIST)


def test_json_documents_are_accepted() -> None:
    raw = _doc(
        '{"mapping_version": "0.1", "types": [{"type": "MODULE.TypeTagged", "table": "tagged",'
        ' "fields": {"values": {"array_kind": "NS"}}}]}'
    )
    register_mapping_document(parse_mapping_document(raw))

    obj = TypeTagged()
    obj.values = [3, 1]
    assert to_item(obj) == {"values": {"NS": ["3", "1"]}}


@pytest.mark.parametrize(
    ("raw", "match"),
    [
        ("{not yaml", "invalid mapping"),
        ("- a\n- b\n", "must be a map"),
        ('mapping_version: "9"\ntypes: [{type: x, table: t}]\n', "unsupported mapping_version"),
        ('mapping_version: "0.1"\ntypes: []\n', "must include types"),
        ('mapping_version: "0.1"\ntypes: [{table: t}]\n', "missing type"),
        ('mapping_version: "0.1"\ntypes: [{type: x}]\n', "exactly one of table or embeddable"),
        ('mapping_version: "0.1"\ntypes: [{type: x, table: t, embeddable: true}]\n', "exactly one of table or embeddable"),
        ('mapping_version: "0.1"\ntypes: [{type: x, embeddable: "yes"}]\n', "embeddable must be a boolean"),
        ('mapping_version: "0.1"\ntypes: [{type: x, table: t, fields: [a]}]\n', "fields must be a map"),
    ],
)
def test_parse_mapping_document_rejects_bad_documents(raw: str, match: str) -> None:
    with pytest.raises(ValidationError, match=match):
        parse_mapping_document(raw)


def test_register_rejects_bad_field_options() -> None:
    unknown = parse_mapping_document(
        _doc('mapping_version: "0.1"\ntypes: [{type: MODULE.Invoice, table: invoices, fields: {id: {pk: true}}}]\n')
    )
    with pytest.raises(ValidationError, match="unknown field options"):
        register_mapping_document(unknown)

    bad_kind = parse_mapping_document(
        _doc('mapping_version: "0.1"\ntypes: [{type: MODULE.Invoice, table: invoices, fields: {lines: {array_kind: XS}}}]\n')
    )
    with pytest.raises(ValidationError, match="unknown array_kind"):
        register_mapping_document(bad_kind)
