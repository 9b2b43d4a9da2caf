# -*- coding: utf-8 -*-
'''
Run level configuration.

Every default that depends on the whole detection table (the tertiary
complement, the study end date) is resolved here once, before any site is
scanned, and handed to each site scan inside an immutable ``survey_config``.
'''

import logging
import numbers
from collections import namedtuple
import pandas as pd
from pyrecurrent.classifier import species_partition, TERTIARY, IGNORED, CATEGORIES
from pyrecurrent.validation import ConfigurationError

logger = logging.getLogger(__name__)

survey_config = namedtuple('survey_config', ['partition',
                                             'default_category',
                                             'survey_duration',
                                             'survey_end_date',
                                             'study_start_date',
                                             'time_unit',
                                             'site_col',
                                             'time_col',
                                             'species_col'])

def _is_number(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool)

def _as_timedelta(value, name):
    try:
        return pd.Timedelta(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} could not be read as a duration: {value!r}")

def _as_instant(value, times, name):
    '''Convert a caller supplied instant to the type of the timestamp column.'''
    if pd.api.types.is_datetime64_any_dtype(times):
        try:
            instant = pd.Timestamp(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{name} could not be read as a date: {value!r}")
        if instant is pd.NaT:
            raise ConfigurationError(f"{name} could not be read as a date: {value!r}")
        data_tz = getattr(times.dt, 'tz', None)
        if (instant.tz is None) != (data_tz is None):
            raise ConfigurationError(
                f"{name} ({instant}) and the detection timestamps must both be "
                f"timezone aware or both naive."
            )
        return instant

    if not _is_number(value):
        raise ConfigurationError(
            f"{name} must be a number when timestamps are numeric, got {value!r}"
        )
    return value

def resolve_duration(survey_duration, times, time_unit):
    """
    Convert ``survey_duration`` to the type that is added to a timestamp.

    Parameters
    ----------
    survey_duration : pandas.Timedelta, datetime.timedelta, str or number
        Administrative cap on survey length. For datetime timestamps a bare
        number counts ``time_unit`` lengths (days by default). For numeric
        timestamps it must be a number in the timestamp's own unit.
    times : pandas.Series
        Validated timestamp column.
    time_unit : pandas.Timedelta or None
        Unit of the output time scale, None for numeric timestamps.

    Raises
    ------
    ConfigurationError
        If the duration is missing, of the wrong kind or not positive.
    """
    if survey_duration is None:
        raise ConfigurationError("survey_duration is required.")

    if time_unit is None:
        if not _is_number(survey_duration):
            raise ConfigurationError(
                f"survey_duration must be a number when timestamps are numeric, "
                f"got {survey_duration!r}"
            )
        duration = survey_duration
        positive = duration > 0
    else:
        if _is_number(survey_duration):
            duration = survey_duration * time_unit
        else:
            duration = _as_timedelta(survey_duration, 'survey_duration')
        positive = duration > pd.Timedelta(0)

    if not positive:
        raise ConfigurationError(f"survey_duration must be positive, got {survey_duration!r}")
    return duration

def resolve_config(detections,
                   primary,
                   secondary,
                   survey_duration,
                   tertiary = None,
                   ignored = None,
                   survey_end_date = None,
                   study_start_date = None,
                   time_unit = '1D',
                   site_col = 'Site',
                   time_col = 'DateTime',
                   species_col = 'Species'):
    """
    Resolve and validate run parameters against the full detection table.

    Parameters
    ----------
    detections : pandas.DataFrame
        Detection table whose timestamp column has already been validated.
    primary, secondary, tertiary, ignored : iterable
        Species label sets, see :func:`pyrecurrent.classifier.species_partition`.
    survey_duration :
        Administrative cap on survey length, see :func:`resolve_duration`.
    survey_end_date : optional
        End of the study. Defaults to the last timestamp in the table.
    study_start_date : optional
        Detections before this instant are not part of the study.
    time_unit : str or pandas.Timedelta, optional
        Length of one output time unit for datetime timestamps. Default one day.
    site_col, time_col, species_col : str
        Column names.

    Returns
    -------
    survey_config
    """
    times = detections[time_col]

    if pd.api.types.is_datetime64_any_dtype(times):
        unit = _as_timedelta(time_unit, 'time_unit')
        if unit <= pd.Timedelta(0):
            raise ConfigurationError(f"time_unit must be positive, got {time_unit!r}")
    else:
        unit = None

    duration = resolve_duration(survey_duration, times, unit)

    if survey_end_date is None:
        end_date = times.max()
        logger.info("Study end date defaults to the last detection: %s", end_date)
    else:
        end_date = _as_instant(survey_end_date, times, 'survey_end_date')

    if study_start_date is not None:
        start_date = _as_instant(study_start_date, times, 'study_start_date')
        if start_date >= end_date:
            raise ConfigurationError(
                f"study_start_date ({start_date}) must precede survey_end_date ({end_date})."
            )
    else:
        start_date = None

    observed = detections[species_col].unique()
    partition = species_partition(observed, primary, secondary, tertiary, ignored)
    default_category = IGNORED if tertiary is not None else TERTIARY

    counts = pd.Series(list(partition.values())).value_counts()
    logger.info("Species partition: %s",
                ", ".join(f"{category}={int(counts.get(category, 0))}" for category in CATEGORIES))

    return survey_config(partition = partition,
                         default_category = default_category,
                         survey_duration = duration,
                         survey_end_date = end_date,
                         study_start_date = start_date,
                         time_unit = unit,
                         site_col = site_col,
                         time_col = time_col,
                         species_col = species_col)
