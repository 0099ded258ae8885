"""
Request builders shared by the test modules.
"""
from app.checklists.models import AnswerInput, ApprovalStatus, ExecutionRequest, TargetType


def approved(question_id: str) -> AnswerInput:
    return AnswerInput(question_id=question_id, approval_status=ApprovalStatus.APPROVED, approval_value=1.0)


def not_approved(question_id: str) -> AnswerInput:
    return AnswerInput(question_id=question_id, approval_status=ApprovalStatus.NOT_APPROVED, approval_value=0.0)


def intermediate(question_id: str, value: float = 0.5) -> AnswerInput:
    return AnswerInput(question_id=question_id, approval_status=ApprovalStatus.INTERMEDIATE, approval_value=value)


def template_request(template_id: str, answers, **kwargs) -> ExecutionRequest:
    fields = dict(
        template_id=template_id,
        executor_user_id="user-1",
        target_type=TargetType.VEHICLE,
        target_id="vehicle-1",
        answers=answers,
    )
    fields.update(kwargs)
    return ExecutionRequest(**fields)


def group_request(group_id: str, answers, **kwargs) -> ExecutionRequest:
    fields = dict(
        group_id=group_id,
        executor_user_id="user-1",
        target_type=TargetType.WAREHOUSE,
        target_id="warehouse-1",
        answers=answers,
    )
    fields.update(kwargs)
    return ExecutionRequest(**fields)
