from .user import User
from .team import Team, TeamMember, TeamRole, MembershipStatus
from .invite import TeamInvite, InviteStatus
from .email_change import EmailChangeRequest, EmailChangeStatus
from .action_window import UserActionWindow
from .media import MediaItem, MediaType, StorageType
