from typing import Annotated

from mindi import Inject, Token, post_construct


class MyClass:
    pass


class Database:
    def __init__(self) -> None:
        self.url = "sqlite://"


class Repository:
    def __init__(self, db: Database) -> None:
        self.db = db


class Service:
    repository: Annotated[Repository, Inject()]

    def __init__(self, db: Database) -> None:
        self.db = db
        self.repository_in_init = hasattr(self, "repository")
        self.repository_in_hook = False
        self.events: list[str] = []

    @post_construct
    def init(self) -> None:
        self.repository_in_hook = isinstance(self.repository, Repository)
        self.events.append("init")


PLUGINS: Token[list[str]] = Token("plugins")
MESSAGE: Token[str] = Token("message")
