"""
기본 모델
"""

from pydantic import BaseModel as PydanticBaseModel, ConfigDict


class BaseModel(PydanticBaseModel):
    """
    기본 모델 클래스
    모든 모델의 베이스
    """

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )


class RecordModel(BaseModel):
    """
    협력자(문서 저장소)가 넘겨주는 읽기 전용 레코드
    엔진은 절대 수정하지 않는다.
    """

    model_config = ConfigDict(
        from_attributes=True,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
