from uniform_ops.modules.audit.relationships import RelationshipAuditor
from uniform_ops.modules.audit.status_consistency import StatusConsistencyAuditor
from uniform_ops.modules.audit.status_repair import StatusRepairService

__all__ = ["RelationshipAuditor", "StatusConsistencyAuditor", "StatusRepairService"]
