from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional, Any, Dict, Union, Literal

ColumnType = Literal["number", "date", "category", "text"]
ChartType = Literal["bar", "line", "pie", "doughnut", "scatter", "bubble"]
AggregationMethod = Literal["mean", "sum", "count", "median"]

# A cleaned cell: number, date, raw text/category value, or missing
CellValue = Union[int, float, datetime, str, None]

# A raw JSON cell; nested lists and objects are rejected
RawValue = Union[bool, int, float, str, None]


class Severity:
    BLOCK = "BLOCK"
    WARN = "WARN"
    AUTO_FIX = "AUTO_FIX"


class ColumnMetadata(BaseModel):
    key: str
    type: ColumnType
    label: str


class TopValue(BaseModel):
    val: Any
    count: int


class ColumnStats(BaseModel):
    null_count: int
    # number / date
    min: Optional[Union[float, datetime]] = None
    max: Optional[Union[float, datetime]] = None
    # number only
    mean: Optional[float] = None
    median: Optional[float] = None
    sum: Optional[float] = None
    std_dev: Optional[float] = None
    variance: Optional[float] = None
    # category / text (and number cardinality)
    unique_count: Optional[int] = None
    top: Optional[List[TopValue]] = None


class AnalyzedColumn(ColumnMetadata):
    stats: ColumnStats


class AnalysisResult(BaseModel):
    data: List[Dict[str, Any]]
    columns: List[AnalyzedColumn]
    row_count: int

    def column(self, key: Optional[str]) -> Optional[AnalyzedColumn]:
        return next((c for c in self.columns if c.key == key), None)


class ChartConfig(BaseModel):
    type: ChartType
    x_axis: str
    y_axis: str
    size_axis: Optional[str] = None
    aggregation: Optional[AggregationMethod] = None
    title: Optional[str] = None
    description: Optional[str] = None
    score: Optional[float] = None
    is_histogram: bool = False


class ValidationResult(BaseModel):
    valid: bool
    severity: Optional[Literal["BLOCK", "WARN", "AUTO_FIX"]] = None
    reason: Optional[str] = None
    suggested_type: Optional[ChartType] = None


class SmartSuggestion(BaseModel):
    type: ChartType
    aggregation: Optional[AggregationMethod] = None


class ExplorerConfig(BaseModel):
    """Chart settings of the manual explorer. Replaced, never mutated."""
    type: ChartType = "bar"
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    aggregation: AggregationMethod = "mean"


class ExplorerUpdate(BaseModel):
    config: ExplorerConfig
    hint: str = ""


class PreparedChartData(BaseModel):
    rows: List[Dict[str, Any]]
    info: Optional[str] = None


class HistogramBin(BaseModel):
    label: str
    low: float
    high: float
    count: int


class DashboardResponse(BaseModel):
    filename: Optional[str] = None
    analysis: AnalysisResult
    recommendations: List[ChartConfig]
    histograms: Dict[str, List[HistogramBin]] = {}
    truncated: bool = False


class AnalyzeRequest(BaseModel):
    rows: List[Dict[str, RawValue]]


class ValidateRequest(BaseModel):
    chart_type: ChartType
    x_column: Optional[AnalyzedColumn] = None
    y_column: Optional[AnalyzedColumn] = None


class ValidateResponse(BaseModel):
    validation: ValidationResult
    suggestion: Optional[SmartSuggestion] = None


class AxisChangeRequest(BaseModel):
    config: ExplorerConfig
    axis: Literal["x", "y"]
    key: str
    columns: List[AnalyzedColumn]


class ExploreChartRequest(BaseModel):
    config: ExplorerConfig
    data: List[Dict[str, Any]]
    columns: List[AnalyzedColumn]
    hint: str = ""


class ExploreChartResponse(BaseModel):
    prepared: Optional[PreparedChartData] = None
    caption: str
    validation: Optional[ValidationResult] = None
    availability: Dict[str, ValidationResult]


class ChartTypeChangeRequest(BaseModel):
    config: ExplorerConfig
    chart_type: ChartType
    columns: List[AnalyzedColumn]
