"""
Data quality models for transaction ingestion.

Malformed records are kept (so counts stay honest) but flagged; the report
tells callers how many records will be invisible to date-based metrics.
"""

from pydantic import BaseModel, Field, field_validator


class QualityIssue(BaseModel):
    """
    Individual data quality issue identified during ingestion.

    Attributes:
        field: Field name where the issue was detected
        issue_type: Type of quality issue (e.g., "missing", "invalid_format")
        count: Number of records affected by this issue
        description: Human-readable description of the issue
    """

    field: str = Field(description="Field name where issue was detected")
    issue_type: str = Field(
        description="Type of quality issue (e.g., 'missing', 'invalid_format')"
    )
    count: int = Field(description="Number of records affected by this issue", ge=0)
    description: str = Field(description="Human-readable description of the issue")


class DataQualityReport(BaseModel):
    """
    Quality assessment for one ingestion batch.

    Attributes:
        source: Source identifier for this batch
        total_records: Total number of records in batch
        dated_records: Records with a usable effective timestamp
        undated_records: Records excluded from date-based aggregation
        completeness_score: Proportion of records with a usable timestamp (0.0-1.0)
        quality_issues: Specific issues detected
        impact_advisory: Human-readable guidance on quality impact
    """

    source: str = Field(description="Source identifier for this batch")
    total_records: int = Field(description="Total number of records in batch", ge=0)
    dated_records: int = Field(description="Records with a usable timestamp", ge=0)
    undated_records: int = Field(description="Records without a usable timestamp", ge=0)
    completeness_score: float = Field(
        description="Proportion of records with a usable timestamp", ge=0.0, le=1.0
    )
    quality_issues: list[QualityIssue] = Field(
        default_factory=list, description="List of specific quality issues detected"
    )
    impact_advisory: str = Field(description="Human-readable guidance on quality impact")

    @field_validator("completeness_score")
    @classmethod
    def round_score(cls, v: float) -> float:
        return round(v, 4)
