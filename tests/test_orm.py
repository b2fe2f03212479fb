"""Integration tests for the SQLAlchemy mixin against in-memory SQLite."""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from sqlalchemy import JSON, ForeignKey, String, func, insert, inspect, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, defer, mapped_column, relationship

from model_defaults import Default, DefaultValuesMixin
from model_defaults.exceptions import DefaultValueConfigurationError, MassAssignmentError
from model_defaults.orm import _apply_defaults_after_load, register_load_listener

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine

_serials = itertools.count(1)


class Base(DefaultValuesMixin, DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    __default_values__ = {
        "name": "Joe",
        "age": 20,
    }

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str | None] = mapped_column(String(50))
    age: Mapped[int | None]


class Book(Base):
    __tablename__ = "books"
    __default_values__ = {
        "title": "Untitled",
        "slug": Default(compute=lambda book: book.title.lower()),
        "serial": Default(compute=lambda: next(_serials)),
        "pages": Default(100, allows_nil=False),
        "tags": ["draft"],
        "meta": {"history": []},
    }

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str | None]
    slug: Mapped[str | None]
    serial: Mapped[int | None]
    pages: Mapped[int | None]
    tags: Mapped[Any] = mapped_column(JSON, nullable=True)
    meta: Mapped[Any] = mapped_column(JSON, nullable=True)


class Account(Base):
    __tablename__ = "accounts"
    __attr_protected__ = ("name",)
    __default_values__ = {"name": "Joe", "role": "member"}

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str | None]
    role: Mapped[str | None]


class Member(Base):
    __tablename__ = "members"
    __attr_accessible__ = ("nickname",)
    __default_values__ = {"nickname": "anon", "level": 1}

    id: Mapped[int] = mapped_column(primary_key=True)
    nickname: Mapped[str | None]
    level: Mapped[int | None]


class Animal(Base):
    __tablename__ = "animals"
    __default_values__ = {"name": "Rex", "legs": 4}
    __mapper_args__ = {"polymorphic_on": "kind", "polymorphic_identity": "animal"}

    id: Mapped[int] = mapped_column(primary_key=True)
    kind: Mapped[str]
    name: Mapped[str | None]
    legs: Mapped[int | None]


class Dog(Animal):
    __mapper_args__ = {"polymorphic_identity": "dog"}


class Bird(Animal):
    __default_values__ = {"legs": 2}
    __mapper_args__ = {"polymorphic_identity": "bird"}


class Setting(Base):
    __tablename__ = "settings"
    __default_values__ = {
        "key": "general",
        "value": Default("on", allows_nil=False),
    }

    id: Mapped[int] = mapped_column(primary_key=True)
    key: Mapped[str | None]
    value: Mapped[str | None]


class Owner(Base):
    __tablename__ = "owners"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str | None]


class Pet(Base):
    __tablename__ = "pets"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("owners.id"))
    owner: Mapped[Owner | None] = relationship(lazy="joined")


Pet.default_value_for("owner", compute=lambda: Owner(name="shelter"), allows_nil=False)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    display: Mapped[str | None]

    @property
    def nickname(self) -> str | None:
        return getattr(self, "_nickname", None)

    @nickname.setter
    def nickname(self, value: str | None) -> None:
        self._nickname = value
        self.display = f"@{value}"


Profile.default_value_for("nickname", "anon")


@pytest.fixture()
def session(engine: Engine) -> Iterator[Session]:
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


class TestConstruction:
    @pytest.mark.integration
    def test_defaults_applied(self) -> None:
        user = User()
        assert user.name == "Joe"
        assert user.age == 20

    @pytest.mark.integration
    def test_explicit_value_wins(self) -> None:
        assert User(name="Jane").name == "Jane"

    @pytest.mark.integration
    def test_explicit_nil_kept(self) -> None:
        assert User(age=None).age is None

    @pytest.mark.integration
    def test_explicit_nil_overridden_when_nil_disallowed(self) -> None:
        assert Book(pages=None).pages == 100

    @pytest.mark.integration
    def test_computation_receives_record(self) -> None:
        assert Book(title="Dune").slug == "dune"
        assert Book().slug == "untitled"

    @pytest.mark.integration
    def test_computation_runs_per_record(self) -> None:
        first, second = Book(), Book()
        assert second.serial == first.serial + 1

    @pytest.mark.integration
    def test_static_values_shallow_copied(self) -> None:
        first, second = Book(), Book()
        first.tags.append("published")
        assert second.tags == ["draft"]
        first.meta["history"].append("created")
        assert second.meta["history"] == ["created"]

    @pytest.mark.integration
    def test_invalid_keyword_rejected(self) -> None:
        with pytest.raises(TypeError, match="invalid keyword argument"):
            User(nickname="x")

    @pytest.mark.integration
    def test_non_column_attribute_setter(self) -> None:
        profile = Profile()
        assert profile.nickname == "anon"
        assert profile.display == "@anon"

    @pytest.mark.integration
    def test_computation_error_propagates(self) -> None:
        class Fragile(Base):
            __tablename__ = "fragile"

            id: Mapped[int] = mapped_column(primary_key=True)
            name: Mapped[str | None]

        def explode() -> str:
            raise RuntimeError("no default today")

        Fragile.default_value_for("name", compute=explode)
        with pytest.raises(RuntimeError, match="no default today"):
            Fragile()

    @pytest.mark.integration
    def test_defaults_persisted(self, session: Session) -> None:
        session.add(User())
        session.commit()
        session.expunge_all()
        stored = session.scalars(select(User)).one()
        assert (stored.name, stored.age) == ("Joe", 20)


class TestMassAssignment:
    @pytest.mark.integration
    def test_protected_value_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="model_defaults"):
            account = Account(name="Jane", role="admin")
        assert account.name == "Joe"
        assert account.role == "admin"
        assert "mass_assignment_rejected" in caplog.text

    @pytest.mark.integration
    def test_accessible_whitelist(self) -> None:
        member = Member(nickname="neo", level=99)
        assert member.nickname == "neo"
        assert member.level == 1

    @pytest.mark.integration
    def test_strict_sanitizer(self) -> None:
        env = {"MODEL_DEFAULTS_MASS_ASSIGNMENT_SANITIZER": "strict"}
        with patch.dict("os.environ", env, clear=True), pytest.raises(MassAssignmentError):
            Account(name="Jane")

    @pytest.mark.integration
    def test_conflicting_class_body_declarations(self) -> None:
        with pytest.raises(DefaultValueConfigurationError):

            class Broken(Base):
                __tablename__ = "broken"
                __attr_protected__ = ("name",)
                __attr_accessible__ = ("role",)

                id: Mapped[int] = mapped_column(primary_key=True)


class TestInheritance:
    @pytest.mark.integration
    def test_subclass_inherits_defaults(self) -> None:
        dog = Dog()
        assert (dog.name, dog.legs) == ("Rex", 4)
        assert dog.kind == "dog"

    @pytest.mark.integration
    def test_subclass_overrides_last_wins(self) -> None:
        bird = Bird()
        assert (bird.name, bird.legs) == ("Rex", 2)
        assert [s.attribute for s in Bird.default_specs()] == ["name", "legs"]

    @pytest.mark.integration
    def test_parent_unaffected(self) -> None:
        assert Animal().legs == 4


class TestLoad:
    def _insert_null_setting(self, session: Session) -> None:
        session.execute(insert(Setting.__table__).values(id=1, key=None, value=None))
        session.commit()
        session.expunge_all()

    @pytest.mark.integration
    def test_nil_upgraded_on_load(self, session: Session) -> None:
        self._insert_null_setting(session)
        setting = session.get(Setting, 1)
        assert setting is not None
        assert setting.value == "on"
        assert setting.key is None

    @pytest.mark.integration
    def test_upgrade_not_flushed(self, session: Session) -> None:
        self._insert_null_setting(session)
        setting = session.get(Setting, 1)
        assert setting is not None
        assert not inspect(setting).modified
        assert setting not in session.dirty
        session.commit()
        stored = session.execute(select(Setting.__table__.c.value)).scalar_one()
        assert stored is None

    @pytest.mark.integration
    def test_disabled_by_settings(self, session: Session) -> None:
        self._insert_null_setting(session)
        with patch.dict("os.environ", {"MODEL_DEFAULTS_APPLY_ON_LOAD": "false"}, clear=True):
            setting = session.get(Setting, 1)
        assert setting is not None
        assert setting.value is None

    @pytest.mark.integration
    def test_deferred_column_skipped(self, session: Session) -> None:
        self._insert_null_setting(session)
        setting = session.scalars(select(Setting).options(defer(Setting.value))).one()
        assert "value" not in inspect(setting).dict

    @pytest.mark.integration
    def test_relationship_upgrade_not_cascaded(self, session: Session) -> None:
        session.execute(insert(Pet.__table__).values(id=1, owner_id=None))
        session.commit()
        session.expunge_all()

        pet = session.get(Pet, 1)
        assert pet is not None
        assert pet.owner is not None
        assert pet.owner.name == "shelter"
        assert not session.new
        assert not inspect(pet).modified

        session.commit()
        assert session.execute(select(func.count()).select_from(Owner.__table__)).scalar() == 0
        stored = session.execute(select(Pet.__table__.c.owner_id)).scalar_one()
        assert stored is None

    @pytest.mark.integration
    def test_listener_registration(self) -> None:
        with patch("model_defaults.orm.event") as mock_event:
            register_load_listener()
            mock_event.listen.assert_called_once_with(
                DefaultValuesMixin, "load", _apply_defaults_after_load, propagate=True
            )
