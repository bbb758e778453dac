"""Domain layer for ledgerly application.

Entities, errors, pure matching algorithms and the services built on them.
Import from the submodules (``ledgerly.domain.account``,
``ledgerly.domain.import_service`` ...); the package itself stays empty
because ``ledgerly.database`` imports ``ledgerly.domain.entities`` while the
services import ``ledgerly.database``.
"""
