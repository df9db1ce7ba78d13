"""Service layer.

Subpackages
-----------
- ``rentapp.services._shared``: errors, ports (hexagonal interfaces), and the
  :class:`~rentapp.services._shared.base.BaseService` unit-of-work helpers.
- ``rentapp.services.auth``: token lifecycle rules and the auth use cases.
- ``rentapp.services.identity``: SQLAlchemy-backed identity provider.

Import concrete services from their modules; this package re-exports nothing
so that ports can depend on ``_shared.errors`` without import cycles.
"""
