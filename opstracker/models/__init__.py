from .user import User, Group, UserRole
from .operation import Operation, OperationVisibility
from .mitre import MitreTactic, MitreTechnique, MitreSubTechnique
from .taxonomy import Tool, Target
from .technique import Technique, TargetEngagement, EngagementStatus
