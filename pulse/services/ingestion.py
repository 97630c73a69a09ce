"""
Campaign Report CSV Ingestion Service.

Turns a campaign report exported (or pasted) from the ads platform into
MetricRecords for the live day.

Reports arrive with Portuguese or English headers, Brazilian or
international number formatting, currency prefixes, and categorical columns
mixed in. Every numeric cell is routed through the locale-tolerant parser
(pulse.services.number_parser); a cell that does not parse is not an error:
the field is recorded in the record's missingFields and counted as 0.

Key Features:
    - Header aliasing (Campanha/Campaign, Custo/Cost, Impr./Impressions, ...)
    - Delimiter sniffing (',' ';' or tab) when none is given
    - Required column validation (campaign column)
    - Dates as ISO (2026-10-18) or Brazilian (18/10/2026); rows without a
      date take the default date
    - Row-level ValidationErrors for rows that cannot become a record

Usage:
    result, errors = ingest_csv(content, currency=Currency.BRL, default_date=today)
    if result.success:
        engine.set_live_records(result.records)
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple
import csv
import io
import logging
import unicodedata

import pandas as pd

from pulse.models import Currency, IngestionResult, MetricRecord, ValidationError
from pulse.services.number_parser import parse

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Column Aliases
# =============================================================================

# Canonical field -> accepted header spellings (compared accent- and case-insensitively)
COLUMN_ALIASES: Dict[str, List[str]] = {
    'campaignId': ['campaign_id', 'campaign id', 'id da campanha', 'id'],
    'campaignName': ['campanha', 'campaign', 'campaign_name', 'campaign name', 'nome da campanha'],
    'date': ['date', 'dia', 'data', 'day'],
    'impressions': ['impressions', 'impressoes', 'impr.', 'impr'],
    'clicks': ['clicks', 'cliques'],
    'cost': ['cost', 'custo', 'spend', 'gasto'],
    'revenue': [
        'revenue', 'receita', 'conv. value', 'conversion value',
        'valor de conv.', 'valor da conversao', 'valor de conversao',
    ],
    'conversions': ['conversions', 'conversoes', 'conv.', 'conversao'],
}

# At least one of these must be present to identify the campaign
REQUIRED_COLUMNS: List[str] = ['campaignId', 'campaignName']

NUMERIC_FIELDS: List[str] = ['impressions', 'clicks', 'cost', 'revenue', 'conversions']

DATE_FORMATS: List[str] = ['%Y-%m-%d', '%d/%m/%Y', '%d/%m/%y']

CANDIDATE_DELIMITERS: str = ',;\t'


# =============================================================================
# HELPERS
# =============================================================================


def _fold(text: str) -> str:
    """Lowercase and strip accents so 'Impressões' matches 'impressoes'."""
    decomposed = unicodedata.normalize('NFKD', text.strip().lower())
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def resolve_columns(columns: List[str]) -> Dict[str, str]:
    """
    Map canonical field names to the DataFrame's actual column names.

    The first column matching an alias wins; unmatched fields are omitted.
    """
    folded = {_fold(str(col)): col for col in columns}
    mapping: Dict[str, str] = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in folded and folded[alias] not in mapping.values():
                mapping[field_name] = folded[alias]
                break
    return mapping


def sniff_delimiter(content: str) -> str:
    """Guess the delimiter from the header line, defaulting to ','."""
    header = content.lstrip('\ufeff').splitlines()[0] if content.strip() else ''
    try:
        return csv.Sniffer().sniff(header, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return ','


def _cell(row: Dict[str, object], column: str) -> str:
    value = row.get(column)
    return value.strip() if isinstance(value, str) else ''


def parse_report_date(raw: str) -> Optional[date]:
    """Parse an ISO or dd/mm/yyyy date; None when blank or unreadable."""
    value = raw.strip()
    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================


def validate_columns(mapping: Dict[str, str]) -> List[ValidationError]:
    """
    Validate that the report identifies campaigns.

    Args:
        mapping: Output of resolve_columns.

    Returns:
        One ValidationError when neither a campaign id nor a campaign name
        column is present.
    """
    if any(col in mapping for col in REQUIRED_COLUMNS):
        return []
    return [ValidationError(
        field='campaign',
        message="Required column 'Campanha' (or 'Campaign') is missing",
        row_number=None
    )]


# =============================================================================
# ROW CONVERSION
# =============================================================================


def _row_to_record(
    row: Dict[str, object],
    mapping: Dict[str, str],
    currency: Currency,
    default_date: date,
    row_number: int,
) -> Tuple[Optional[MetricRecord], List[ValidationError]]:
    errors: List[ValidationError] = []

    name = _cell(row, mapping['campaignName']) if 'campaignName' in mapping else ''
    campaign_id = _cell(row, mapping['campaignId']) if 'campaignId' in mapping else ''
    campaign_id = campaign_id or name
    if not campaign_id:
        errors.append(ValidationError(
            field='campaign',
            message='Row has no campaign identifier or name',
            row_number=row_number
        ))
        return None, errors

    record_date = default_date
    if 'date' in mapping:
        raw_date = _cell(row, mapping['date'])
        parsed_date = parse_report_date(raw_date)
        if parsed_date is not None:
            record_date = parsed_date
        elif raw_date.strip():
            errors.append(ValidationError(
                field='date',
                message=f"Unrecognized date '{raw_date}', using {default_date.isoformat()}",
                row_number=row_number
            ))

    values: Dict[str, float] = {}
    missing: List[str] = []
    for field_name in NUMERIC_FIELDS:
        parsed = parse(_cell(row, mapping[field_name])) if field_name in mapping else None
        if parsed is None or parsed < 0:
            missing.append(field_name)
            parsed = 0.0
        values[field_name] = parsed

    record = MetricRecord(
        campaignId=campaign_id,
        campaignName=name or None,
        date=record_date,
        impressions=int(round(values['impressions'])),
        clicks=int(round(values['clicks'])),
        conversions=int(round(values['conversions'])),
        cost=values['cost'],
        revenue=values['revenue'],
        currency=currency,
        missingFields=missing,
    )
    return record, errors


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def ingest_csv(
    content: str,
    default_date: date,
    currency: Currency = Currency.BRL,
    delimiter: Optional[str] = None,
) -> Tuple[IngestionResult, List[ValidationError]]:
    """
    Parse a campaign report into MetricRecords.

    Performs the following steps:
    1. Parse CSV using pandas (every cell kept as text)
    2. Resolve header aliases and validate the campaign column
    3. Convert each row, parsing numeric cells locale-tolerantly

    Args:
        content: CSV text.
        default_date: Date for rows without one or with an unreadable one;
            callers pass today in the reference timezone.
        currency: Currency cost and revenue are expressed in.
        delimiter: Column delimiter; sniffed from the header when omitted.

    Returns:
        Tuple of (IngestionResult, list of validation errors). Missing
        required columns or an unreadable file stop the parse with
        success False.
    """
    errors: List[ValidationError] = []
    sep = delimiter or sniff_delimiter(content)

    try:
        df = pd.read_csv(
            io.StringIO(content.lstrip('\ufeff')),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        errors.append(ValidationError(
            field='file',
            message=f'Failed to parse CSV content: {str(e)}',
            row_number=None
        ))
        return IngestionResult(success=False, errors=errors), errors

    if df.empty:
        errors.append(ValidationError(
            field='file',
            message='CSV content is empty or contains no data rows',
            row_number=None
        ))
        return IngestionResult(success=False, errors=errors), errors

    logger.info(f"Parsed CSV with {len(df)} rows and {len(df.columns)} columns")

    mapping = resolve_columns(list(df.columns))
    column_errors = validate_columns(mapping)
    errors.extend(column_errors)

    # If critical columns are missing, stop validation
    if column_errors:
        return IngestionResult(success=False, rows_processed=len(df), errors=errors), errors

    records: List[MetricRecord] = []
    for index, row in enumerate(df.to_dict(orient='records')):
        # 1-based data row numbers
        record, row_errors = _row_to_record(row, mapping, currency, default_date, index + 1)
        errors.extend(row_errors)
        if record is not None:
            records.append(record)

    incomplete = sum(1 for record in records if record.missingFields)
    logger.info(
        f"Ingested {len(records)} records from {len(df)} rows "
        f"({incomplete} incomplete, {len(errors)} errors)"
    )

    result = IngestionResult(
        success=bool(records),
        rows_processed=len(df),
        records=records,
        incomplete_records=incomplete,
        errors=errors,
    )
    return result, errors
