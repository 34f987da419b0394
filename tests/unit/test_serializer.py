import pickle
import types
from decimal import Decimal

import pytest
from cryptography.fernet import Fernet, InvalidToken

from paperdb.storage.serializer import (
    EncryptedSerializer,
    JSONSerializer,
    PickleSerializer,
    create_serializer,
)


class Money:
    def __init__(self, amount, currency):
        self.amount = Decimal(amount)
        self.currency = currency

    def __eq__(self, other):
        return isinstance(other, Money) and (self.amount, self.currency) == (other.amount, other.currency)


class MoneyHandler:
    def __init__(self):
        self.dumped = 0

    def dump(self, value):
        self.dumped += 1
        return f"{value.amount} {value.currency}"

    def load(self, payload):
        amount, currency = payload.split(" ")
        return Money(amount, currency)


class Animal:
    def __init__(self, name):
        self.name = name


class Dog(Animal):
    pass


class AnimalHandler:
    def dump(self, value):
        return value.name

    def load(self, payload):
        return Animal(payload)


class DogHandler:
    def dump(self, value):
        return value.name

    def load(self, payload):
        return Dog(payload)


def test_pickle_roundtrip_plain_values():
    s = PickleSerializer()
    value = {"a": [1, 2, (3, 4)], "b": {5, 6}}
    assert s.load(s.dump(value)) == value


def test_registered_handler_is_used_for_nested_values():
    s = PickleSerializer()
    handler = MoneyHandler()
    s.register_handler(Money, handler)
    value = [Money("1.50", "EUR"), {"price": Money("3", "SEK")}]
    assert s.load(s.dump(value)) == value
    assert handler.dumped == 2


def test_higher_priority_handler_wins():
    s = PickleSerializer()
    s.register_handler(Animal, AnimalHandler(), priority=1)
    s.register_handler(Dog, DogHandler(), priority=5)
    assert type(s.load(s.dump(Dog("rex")))) is Dog

    s = PickleSerializer()
    s.register_handler(Animal, AnimalHandler(), priority=10)
    s.register_handler(Dog, DogHandler(), priority=5)
    restored = s.load(s.dump(Dog("rex")))
    assert type(restored) is Animal
    assert restored.name == "rex"


def test_reregistering_a_shape_replaces_handler():
    s = PickleSerializer()
    s.register_handler(Dog, AnimalHandler())
    s.register_handler(Dog, DogHandler())
    assert type(s.load(s.dump(Dog("rex")))) is Dog


def test_missing_handler_on_load_fails():
    writer = PickleSerializer()
    writer.register_handler(Money, MoneyHandler())
    data = writer.dump(Money("1", "EUR"))
    with pytest.raises(pickle.UnpicklingError):
        PickleSerializer().load(data)


def test_views_decay_to_base_containers():
    s = PickleSerializer()
    d = {"a": 1, "b": 2}
    assert s.load(s.dump(d.keys())) == ["a", "b"]
    assert s.load(s.dump(d.values())) == [1, 2]
    assert s.load(s.dump(d.items())) == [("a", 1), ("b", 2)]
    restored = s.load(s.dump(types.MappingProxyType(d)))
    assert type(restored) is dict and restored == d


def test_shape_hint_mismatch_raises():
    s = PickleSerializer()
    data = s.dump("text")
    assert s.load(data, str) == "text"
    with pytest.raises(TypeError):
        s.load(data, list)


def test_json_roundtrip_with_handler():
    s = JSONSerializer()
    s.register_handler(Money, MoneyHandler())
    value = {"total": Money("9.99", "USD"), "tags": {"x"}}
    restored = s.load(s.dump(value))
    assert restored["total"] == Money("9.99", "USD")
    assert restored["tags"] == ["x"]


def test_json_dict_using_tag_field_reads_back_unchanged():
    s = JSONSerializer()
    s.register_handler(Money, MoneyHandler())
    value = {
        "__paperdb__": "tests.Money",
        "value": 1,
        "nested": [{"__paperdb__": None}, {"plain": True}],
        "total": Money("1.50", "EUR"),
    }
    assert s.load(s.dump(value)) == value
    assert s.load(s.dump([{"__paperdb__": "paperdb.dict", "value": []}])) == [
        {"__paperdb__": "paperdb.dict", "value": []}
    ]


def test_json_falls_back_to_instance_dict():
    s = JSONSerializer()
    assert s.load(s.dump(Animal("cat"))) == {"name": "cat"}


def test_encrypted_with_key_roundtrip():
    s = EncryptedSerializer(key=Fernet.generate_key())
    data = s.dump({"secret": 1})
    assert b"secret" not in data
    assert s.load(data) == {"secret": 1}


def test_encrypted_with_password_and_wrong_password():
    s = EncryptedSerializer(password="pw", iterations=1000)
    data = s.dump(["x"])
    assert s.load(data) == ["x"]
    with pytest.raises(InvalidToken):
        EncryptedSerializer(password="other", iterations=1000).load(data)


def test_encrypted_delegates_handlers_to_base():
    s = EncryptedSerializer(key=Fernet.generate_key())
    s.register_handler(Money, MoneyHandler())
    assert s.load(s.dump(Money("2", "NOK"))) == Money("2", "NOK")


def test_create_serializer():
    assert isinstance(create_serializer(), PickleSerializer)
    assert isinstance(create_serializer("json"), JSONSerializer)
    enc = create_serializer("encrypted", password="pw", iterations=1000, base="json")
    assert isinstance(enc, EncryptedSerializer)
    assert isinstance(enc.base_serializer, JSONSerializer)
    with pytest.raises(ValueError):
        create_serializer("encrypted")
    with pytest.raises(ValueError):
        create_serializer("xml")
