"""
Invite service.

Builds invite links, QR-code and poster URLs for approved distributors and
resolves invite codes back to distributors. Images are rendered by external
endpoints; this module only produces their URLs.
"""

import hashlib
from datetime import datetime
from urllib.parse import quote, urlparse

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import QR_CODE_SIZE
from app.config.settings import settings
from app.models.distributor import Distributor
from app.models.user import User
from app.repositories.distributor_repository import DistributorRepository
from app.services.base_service import BaseService
from app.services.schemas import InviteInfo, ShareContent
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import (
    NotFoundError,
    OperationFailedError,
    ValidationError,
)
from app.validators.distribution import validate_invite_code

INVITE_PATH = "/invite/"
SHORT_LINK_PATH = "/s/"


def build_invite_link(invite_code: str, base_url: str | None = None) -> str:
    """Public registration link carrying an invite code."""
    return f"{base_url or settings.invite_base_url}{INVITE_PATH}{invite_code}"


class InviteService(BaseService):
    """Invite material and invite code resolution."""

    def __init__(
        self, session: AsyncSession, base_url: str | None = None
    ) -> None:
        """
        Initialize invite service.

        Args:
            session: Database session
            base_url: Override for settings.invite_base_url
        """
        super().__init__(session)
        self.distributor_repo = DistributorRepository(session)
        self.base_url = (base_url or settings.invite_base_url).rstrip("/")

    def generate_invite_link(self, invite_code: str) -> str:
        """Registration link for an invite code."""
        return build_invite_link(invite_code, self.base_url)

    def generate_qrcode_url(self, link: str) -> str:
        """URL of the QR code image encoding a link."""
        return (
            f"{self.base_url}/api/qrcode?data={quote(link, safe='')}"
            f"&size={QR_CODE_SIZE}"
        )

    def generate_short_link(
        self, invite_code: str, now: datetime | None = None
    ) -> str:
        """
        Daily-rotating short link for an invite code.

        Args:
            invite_code: Invite code
            now: Reference time (defaults to now)

        Returns:
            Short link URL
        """
        day = (now or utc_now()).strftime("%Y%m%d")
        digest = hashlib.md5((invite_code + day).encode()).hexdigest()
        return f"{self.base_url}{SHORT_LINK_PATH}{digest[:8]}"

    def generate_poster_url(self, invite_code: str) -> str:
        """URL of the invite poster image."""
        return f"{self.base_url}/api/poster?code={quote(invite_code, safe='')}"

    async def get_invite_info(self, distributor_id: int) -> InviteInfo:
        """
        Build invite material for a distributor.

        Args:
            distributor_id: Distributor ID

        Returns:
            Invite links and image URLs

        Raises:
            NotFoundError: If distributor does not exist
            OperationFailedError: If distributor is not approved
        """
        distributor = await self.distributor_repo.get_by_id(distributor_id)
        if distributor is None:
            raise NotFoundError("分销商不存在")
        if not distributor.is_approved:
            raise OperationFailedError("分销商尚未审核通过")

        link = self.generate_invite_link(distributor.invite_code)
        return InviteInfo(
            distributor_id=distributor.id,
            invite_code=distributor.invite_code,
            invite_link=link,
            qrcode_url=self.generate_qrcode_url(link),
            short_link=self.generate_short_link(distributor.invite_code),
            poster_url=self.generate_poster_url(distributor.invite_code),
            user_name=await self._user_name(distributor),
        )

    async def validate_invite_code(self, invite_code: str) -> Distributor:
        """
        Resolve an invite code to an approved distributor.

        Raises:
            ValidationError: If the code is malformed or unknown
            OperationFailedError: If the owner is not approved yet
        """
        valid, code, error = validate_invite_code(invite_code)
        if not valid:
            raise ValidationError(error)

        distributor = await self.distributor_repo.get_by_invite_code(code)
        if distributor is None:
            raise ValidationError("邀请码无效")
        if not distributor.is_approved:
            raise OperationFailedError("邀请人尚未通过审核")
        return distributor

    @staticmethod
    def get_invite_code_from_link(link: str) -> str:
        """
        Extract the invite code from an invite link.

        Short links cannot be resolved offline and are rejected.

        Raises:
            ValidationError: If the link has no invite code
        """
        path = urlparse(link).path
        if path.startswith(INVITE_PATH) and len(path) > len(INVITE_PATH):
            return path[len(INVITE_PATH):].strip("/")
        if path.startswith(SHORT_LINK_PATH):
            raise ValidationError("短链接请通过专门接口解析")
        raise ValidationError("无效的邀请链接格式")

    async def get_share_content(self, distributor_id: int) -> ShareContent:
        """Title, text and links for sharing an invite."""
        info = await self.get_invite_info(distributor_id)
        return ShareContent(
            title="邀请您加入，一起赚佣金",
            description=f"{info.user_name}邀请您加入平台，享受专属优惠",
            image_url=info.poster_url,
            link=info.invite_link,
            wechat_path=f"/pages/register/index?code={info.invite_code}",
        )

    async def _user_name(self, distributor: Distributor) -> str:
        user = await self.session.get(User, distributor.user_id)
        return (user.nickname or "") if user else ""
