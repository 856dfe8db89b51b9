"""
Models for the singleton home/profile document.

The nested collections (social links, education, work history) are fixed shapes with
empty-list defaults rather than open-ended objects.
"""

from typing import List, Optional

from pydantic import Field

from folio_blog.models.common import CamelModel


class SocialLink(CamelModel):
    name: str = ""
    url: str = ""
    icon: str = ""


class Period(CamelModel):
    """An education or work history entry."""

    title: str = ""
    period: str = ""


class HomeStats(CamelModel):
    likes: int = 166
    views: int = 4057
    online: int = 1
    followers: int = 3


class SiteInfo(CamelModel):
    running_time: str = ""
    icp: str = ""


class HomeDocument(CamelModel):
    """Full home document; every field has a default so the singleton can be created lazily."""

    name: str = ""
    subtitle: str = ""
    introduction: str = ""
    avatar_image: Optional[str] = None
    banner_image: Optional[str] = None
    social_links: List[SocialLink] = Field(default_factory=list)
    education: List[Period] = Field(default_factory=list)
    work: List[Period] = Field(default_factory=list)
    stats: HomeStats = Field(default_factory=HomeStats)
    site_info: SiteInfo = Field(default_factory=SiteInfo)


class HomeUpdate(CamelModel):
    name: Optional[str] = None
    subtitle: Optional[str] = None
    introduction: Optional[str] = None
    avatar_image: Optional[str] = None
    banner_image: Optional[str] = None
    social_links: Optional[List[SocialLink]] = None
    education: Optional[List[Period]] = None
    work: Optional[List[Period]] = None
    stats: Optional[HomeStats] = None
    site_info: Optional[SiteInfo] = None


# Fields that arrive JSON-encoded inside multipart forms
HOME_JSON_FIELDS = ("socialLinks", "education", "work", "stats", "siteInfo")
