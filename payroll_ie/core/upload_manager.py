"""
Upload Manager for configuration-as-data files.
Provides a consistent pipeline for band tables and rosters: load -> map -> validate.
"""
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from payroll_ie.core.exceptions import InvalidInput
from payroll_ie.core.schemas import SchemaRegistry
from payroll_ie.core.utils import to_decimal

logger = logging.getLogger(__name__)

@dataclass
class ColumnMapping:
    """Maps uploaded columns to schema fields."""
    source_column: str
    target_field: str
    transform: Optional[str] = None  # 'upper', 'lower', 'strip', 'number'

class UploadManager:
    """Loads CSV/Excel/JSON files and validates rows against a registered schema."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        self.schema_registry = SchemaRegistry()

    def get_schema(self) -> Dict[str, Any]:
        return self.schema_registry.get_schema(self.entity_type)

    def generate_template(self) -> pd.DataFrame:
        """Generate a one-row template from the schema examples."""
        properties = self.get_schema().get('properties', {})
        columns = list(properties)
        sample_data = {field: field_schema.get('example', "") for field, field_schema in properties.items()}
        return pd.DataFrame([sample_data]).reindex(columns=columns)

    def load_file(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """
        Load data from CSV, Excel, or JSON file.

        Cells are kept as text (JSON decimals as Decimal) so ids keep their
        leading zeros and amounts never pass through float.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_ext = file_path.suffix.lower()
        if file_ext == '.csv':
            return pd.read_csv(file_path, dtype=str)
        if file_ext in ['.xlsx', '.xls']:
            return pd.read_excel(file_path, dtype=str)
        if file_ext == '.json':
            with open(file_path, 'r') as f:
                data = json.load(f, parse_float=Decimal)
            return pd.DataFrame(data if isinstance(data, list) else [data], dtype=object)
        raise InvalidInput(f"Unsupported file format: {file_ext}")

    def map_columns(self, df: pd.DataFrame, mappings: List[ColumnMapping]) -> pd.DataFrame:
        """Apply column mappings and transformations."""
        mapped_df = df.rename(columns={m.source_column: m.target_field for m in mappings})

        for mapping in mappings:
            col = mapping.target_field
            if col not in mapped_df.columns or not mapping.transform:
                continue
            if mapping.transform == 'upper':
                mapped_df[col] = mapped_df[col].astype(str).str.upper()
            elif mapping.transform == 'lower':
                mapped_df[col] = mapped_df[col].astype(str).str.lower()
            elif mapping.transform == 'strip':
                mapped_df[col] = mapped_df[col].astype(str).str.strip()
            elif mapping.transform == 'number':
                mapped_df[col] = mapped_df[col].map(lambda v: v if pd.isna(v) else to_decimal(v, col))

        return mapped_df

    def validate_data(self, df: pd.DataFrame) -> tuple[List[Dict], List[str]]:
        """Validate data against schema. Returns (row_errors, warnings)."""
        schema = self.get_schema()
        required_fields = schema.get('required', [])
        properties = schema.get('properties', {})

        row_errors = []
        warnings = []

        for idx, row in df.iterrows():
            errors_for_row = []

            for field in required_fields:
                value = row.get(field)
                if field not in df.columns or pd.isna(value) or str(value).strip() == '':
                    errors_for_row.append(f"Missing required field: {field}")

            for field, value in row.items():
                if field not in properties or pd.isna(value):
                    continue
                field_schema = properties[field]
                field_type = field_schema.get('type')

                if field_type in ('number', 'integer'):
                    try:
                        number = to_decimal(value, field)
                    except InvalidInput:
                        errors_for_row.append(f"{field}: must be a number")
                        continue
                    if field_type == 'integer' and number != number.to_integral_value():
                        errors_for_row.append(f"{field}: must be a whole number")
                    if 'minimum' in field_schema and number < field_schema['minimum']:
                        errors_for_row.append(f"{field}: below minimum {field_schema['minimum']}")
                    if 'maximum' in field_schema and number > field_schema['maximum']:
                        errors_for_row.append(f"{field}: above maximum {field_schema['maximum']}")

                if field_type == 'string':
                    text = str(value)
                    max_length = field_schema.get('maxLength')
                    if max_length and len(text) > max_length:
                        errors_for_row.append(f"{field}: exceeds maximum length {max_length}")

                allowed = field_schema.get('enum')
                if allowed and str(value) not in allowed:
                    errors_for_row.append(f"{field}: must be one of {', '.join(allowed)}")

            if errors_for_row:
                row_errors.append({
                    'row': idx + 1,
                    'errors': errors_for_row,
                    'data': row.to_dict()
                })

        for field in properties:
            if field not in df.columns:
                warnings.append(f"Optional field '{field}' not found in data")

        return row_errors, warnings

    def load_validated(self, file_path: Union[str, Path],
                       mappings: Optional[List[ColumnMapping]] = None,
                       transform_fn=None) -> pd.DataFrame:
        """Load, map, optionally transform and validate; raises InvalidInput listing bad rows."""
        df = self.load_file(file_path)
        if mappings:
            df = self.map_columns(df, mappings)
        if transform_fn:
            df = transform_fn(df)

        row_errors, warnings = self.validate_data(df)
        for w in warnings:
            logger.debug("%s upload: %s", self.entity_type, w)
        if row_errors:
            details = "; ".join(f"row {e['row']}: {', '.join(e['errors'])}" for e in row_errors)
            raise InvalidInput(f"Invalid {self.entity_type} data in {Path(file_path).name}: {details}")
        return df
