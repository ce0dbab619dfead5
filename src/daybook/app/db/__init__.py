from .users import UsersRepository
from .entries import EntriesRepository

__all__ = [
    "UsersRepository",
    "EntriesRepository",
]
