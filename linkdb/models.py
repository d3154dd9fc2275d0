from pydantic import BaseModel, field_validator


class Link(BaseModel):
    linkdate: str
    url: str
    title: str = ""
    description: str = ""
    tags: str = ""
    private: int = 0  # 0 = public, anything else = private

    @field_validator("private", mode="before")
    @classmethod
    def _coerce_private(cls, value):
        if isinstance(value, bool):
            return int(value)
        return value

    @field_validator("title", "description", "tags", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @property
    def is_private(self) -> bool:
        return self.private != 0

    @property
    def tag_list(self) -> list[str]:
        return self.tags.split()


class LinkIn(BaseModel):
    url: str
    title: str = ""
    description: str = ""
    tags: str = ""
    private: bool = False


class TagCount(BaseModel):
    tag: str
    count: int
