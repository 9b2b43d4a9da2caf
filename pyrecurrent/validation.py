"""
Input validation utilities and error taxonomy for pyrecurrent
"""
import pandas as pd

DEFAULT_COLUMNS = {'site_col': 'Site',
                   'time_col': 'DateTime',
                   'species_col': 'Species'}

class ValidationError(Exception):
    """Raised when the detection table cannot be formatted as supplied"""
    pass

class ConfigurationError(ValidationError):
    """Raised when run parameters are inconsistent (overlapping species sets,
    non-positive survey duration, unknown column names)"""
    pass

class JoinError(Exception):
    """Raised when site covariates cannot be joined unambiguously"""
    pass

class DegenerateIntervalWarning(UserWarning):
    """A zero-length record was emitted because its bounds coincided"""
    pass

def validate_columns(detections, site_col='Site', time_col='DateTime', species_col='Species'):
    """
    Validate the detection table exists, is not empty and carries the
    site, timestamp and species columns.

    Parameters
    ----------
    detections : pandas.DataFrame
        Raw detection table, one row per detection.
    site_col, time_col, species_col : str
        Column names holding the site identifier, the timestamp and the
        species label.

    Raises
    ------
    ConfigurationError
        If a column name other than the default was requested and is not
        present in the table.
    ValidationError
        If the table is not a DataFrame, is empty, or lacks one of the
        default columns.

    Returns
    -------
    bool
        True if validation passes
    """
    if not isinstance(detections, pd.DataFrame):
        raise ValidationError(
            f"Detections must be a pandas.DataFrame, got {type(detections).__name__}."
        )

    if detections.empty:
        raise ValidationError("Detection table is empty, there is nothing to survey.")

    requested = {'site_col': site_col,
                 'time_col': time_col,
                 'species_col': species_col}

    if len(set(requested.values())) < len(requested):
        raise ConfigurationError(
            f"Site, timestamp and species must be distinct columns, got {list(requested.values())}."
        )

    unknown = [col for key, col in requested.items()
               if col not in detections.columns and col != DEFAULT_COLUMNS[key]]
    if unknown:
        raise ConfigurationError(
            f"Unknown column names requested: {', '.join(map(str, unknown))}. "
            f"Available columns: {', '.join(map(str, detections.columns))}"
        )

    missing = [col for col in requested.values() if col not in detections.columns]
    if missing:
        raise ValidationError(
            f"Detection table missing required columns: {', '.join(map(str, missing))}."
        )

    return True

def validate_timestamps(times):
    """
    Check timestamps are present and orderable, parsing strings to datetimes.

    Numeric and datetime64 columns are returned as is. Anything else is run
    through ``pandas.to_datetime``; values it cannot parse are reported.

    Parameters
    ----------
    times : pandas.Series
        Timestamp column of the detection table.

    Raises
    ------
    ValidationError
        If any timestamp is missing or cannot be parsed.

    Returns
    -------
    pandas.Series
        Timestamps as a numeric or datetime64 series.
    """
    if pd.api.types.is_bool_dtype(times):
        raise ValidationError("Timestamps must be datetimes or numbers, found booleans.")

    if pd.api.types.is_numeric_dtype(times) or pd.api.types.is_datetime64_any_dtype(times):
        parsed = times
    else:
        parsed = pd.to_datetime(times, errors='coerce')
        bad = parsed.isna() & times.notna()
        if bad.any():
            examples = times[bad].astype(str).unique()[:5]
            raise ValidationError(
                f"{int(bad.sum())} timestamps could not be parsed, e.g. {', '.join(examples)}."
            )

    if parsed.isna().any():
        raise ValidationError(
            f"{int(parsed.isna().sum())} detections have no timestamp."
        )

    return parsed

def validate_labels(detections, site_col, species_col):
    """
    Check every detection carries a site identifier and a species label.

    Raises
    ------
    ValidationError
        If either column holds missing values.
    """
    for col, what in ((site_col, 'site identifier'), (species_col, 'species label')):
        n_missing = int(detections[col].isna().sum())
        if n_missing:
            raise ValidationError(
                f"{n_missing} detections are missing a {what} (column '{col}')."
            )
    return True
