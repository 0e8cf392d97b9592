"""
Distribution services package.

Contains modular services for the referral program:
- chain_manager: Upline team counter propagation
- distributor_service: Applying and team queries
- admin_service: Review, listing, withdrawal transitions, statistics
- commission_service: Commission generation, settlement and cancellation
- commission_setting_service: Versioned commission configuration
- invite_service: Invite links and code resolution
- dashboard_service: Distributor dashboard figures
"""

from app.services.distribution.admin_service import DistributionAdminService
from app.services.distribution.chain_manager import DistributorChainManager
from app.services.distribution.commission_service import CommissionService
from app.services.distribution.commission_setting_service import (
    CommissionSettingService,
)
from app.services.distribution.dashboard_service import DashboardService
from app.services.distribution.distributor_service import DistributorService
from app.services.distribution.invite_service import (
    InviteService,
    build_invite_link,
)


__all__ = [
    # Admin
    "DistributionAdminService",
    # Distributors
    "DistributorChainManager",
    "DistributorService",
    "InviteService",
    "build_invite_link",
    # Commissions
    "CommissionService",
    "CommissionSettingService",
    # Dashboard
    "DashboardService",
]
