from pydantic import BaseModel, ConfigDict, field_validator

from utils import is_input_valid


class RepositoryOwner(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: str


class Repository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    owner: RepositoryOwner


class GitHubPushPayload(BaseModel):
    # Only the fields needed to locate the repository; the rest of the delivery is ignored.
    model_config = ConfigDict(extra="ignore")

    repository: Repository


class RepositoryRef(BaseModel):
    """
    A repository owner/name pair that is safe to use in filesystem paths and commands.

    Construction fails with a ValidationError for anything outside [A-Za-z0-9._-],
    for empty values, and for the path components '.' and '..'.
    """
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @field_validator("owner", "name")
    @classmethod
    def check_safe(cls, value: str) -> str:
        if not is_input_valid(value):
            raise ValueError("contains characters outside [A-Za-z0-9._-]")
        if value in ("", ".", ".."):
            raise ValueError("must be a non-empty name other than '.' or '..'")
        return value

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"
