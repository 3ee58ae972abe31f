from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union


@dataclass(frozen=True)
class ResolvedObject:
    """A wrapped member whose descriptor index the resolver turned into a store object"""

    descriptor_index: int
    external_object: Any


@dataclass(frozen=True)
class OneOff:
    """An inline member: name, address type and address carried in the list itself"""

    display_name: str
    address_type: str
    email_address: str

    def __str__(self) -> str:

        return f'{self.display_name} <{self.email_address}> ({self.address_type})'


@dataclass(frozen=True)
class Skipped:
    """A wrapped member the resolver could not load"""

    reason: str
    descriptor_index: Optional[int] = None


MemberRecord = Union[ResolvedObject, OneOff, Skipped]


@dataclass(frozen=True)
class Diagnostic:

    member_index: Optional[int]
    message: str

    def __str__(self) -> str:

        if self.member_index is None:
            return self.message
        return f'member {self.member_index}: {self.message}'


@dataclass
class MemberList:
    """Decoded members of one distribution list plus what went wrong while decoding them"""

    members: list[MemberRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def warn(self, member_index: Optional[int], message: str) -> None:

        self.diagnostics.append(Diagnostic(member_index, message))

    @property
    def resolved(self) -> list[ResolvedObject]:
        return [member for member in self.members if isinstance(member, ResolvedObject)]

    @property
    def one_offs(self) -> list[OneOff]:
        return [member for member in self.members if isinstance(member, OneOff)]

    @property
    def skipped(self) -> list[Skipped]:
        return [member for member in self.members if isinstance(member, Skipped)]

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[MemberRecord]:
        return iter(self.members)

    def __getitem__(self, index: int) -> MemberRecord:
        return self.members[index]
