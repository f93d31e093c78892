"""Data models for the knowledge-base hierarchy returned by the Solutions API."""

from dataclasses import dataclass, field
from typing import List, Optional

import constants


@dataclass
class Category:
    """Top-level grouping; maps to one output directory."""

    id: int
    name: str

    @classmethod
    def from_api(cls, data):
        return cls(id=data['id'], name=data.get('name') or constants.UNNAMED_CATEGORY)


@dataclass
class Folder:
    """Child of exactly one category; maps to one output subdirectory."""

    id: int
    name: str
    category_id: Optional[int] = None

    @classmethod
    def from_api(cls, data, category_id=None):
        return cls(
            id=data['id'],
            name=data.get('name') or constants.UNNAMED_FOLDER,
            category_id=data.get('category_id', category_id),
        )


@dataclass
class Attachment:
    url: str
    name: str

    @classmethod
    def from_api(cls, data, index=0):
        return cls(
            url=data.get('attachment_url') or '',
            name=data.get('name') or constants.ATTACHMENT_FALLBACK_TEMPLATE.format(index=index),
        )


@dataclass
class Article:
    """The unit of export. Read-only from this tool's perspective."""

    id: int
    title: str
    status: int = constants.STATUS_DRAFT
    description: str = ''
    folder_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)

    @property
    def is_published(self):
        return self.status == constants.STATUS_PUBLISHED

    @classmethod
    def from_api(cls, data, folder_id=None):
        """Builds an Article from a listing item or a detail response (envelope already removed)."""
        status = data.get('status')
        try:
            status = int(status) if status is not None else constants.STATUS_DRAFT
        except (TypeError, ValueError):
            status = constants.STATUS_DRAFT
        return cls(
            id=data['id'],
            title=data.get('title') or constants.UNTITLED_TITLE,
            status=status,
            description=data.get('description') or '',
            folder_id=data.get('folder_id', folder_id),
            created_at=data.get('created_at') or None,
            updated_at=data.get('updated_at') or None,
            tags=[str(tag) for tag in (data.get('tags') or [])],
            attachments=[
                Attachment.from_api(item, index)
                for index, item in enumerate(data.get('attachments') or [])
                if isinstance(item, dict)
            ],
        )
