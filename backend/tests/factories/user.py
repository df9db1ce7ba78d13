"""Factory Boy definition for :class:`rentapp.models.user.User`."""

from __future__ import annotations

import factory
from werkzeug.security import generate_password_hash

from rentapp.models.user import User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """Build persisted :class:`rentapp.models.user.User` instances.

    The hash is computed before the flush so the row leaves the session
    clean; read-only units of work reject pending ORM changes.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    name = factory.Faker("name")
    password_hash = factory.LazyAttribute(lambda o: generate_password_hash(o.password))
