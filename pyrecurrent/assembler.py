# -*- coding: utf-8 -*-
"""
Assembler
=========

Merges the per site record lists produced by the survey state machine into
one recurrent event table, numbers the surveys and attaches static site
covariates.

Assembly runs only once every site has been scanned, survey ids are handed
out here and never by the site scans themselves.

Output columns
--------------
site_id : Site identifier
survey_id : 1-based survey number, unique across the table
t_start, t_stop : Interval bounds measured from the survey start
event : 1 if the interval ends in a secondary detection, else 0
status : Terminal censoring status of the survey (1 = censored by tertiary)
enum : 1-based record number within the survey
survey_start : Absolute start of the survey
time_0, time_1 : Absolute interval bounds
closure : Reason the survey closed
"""

import logging
import pandas as pd
from pyrecurrent.survey import survey_record
from pyrecurrent.validation import JoinError, ValidationError

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ['site_id',
                  'survey_id',
                  't_start',
                  't_stop',
                  'event',
                  'status',
                  'enum',
                  'survey_start',
                  'time_0',
                  'time_1',
                  'closure']

def check_covariates(covariates, site_col):
    """
    Validate a static site covariate table ahead of the join.

    Rows that are exact duplicates collapse to one. Two rows for the same
    site that disagree on any value make the join ambiguous.

    Parameters
    ----------
    covariates : pandas.DataFrame
        One row per site, keyed on ``site_col``.
    site_col : str
        Name of the site column in the covariate table.

    Raises
    ------
    ValidationError
        If the table is not a DataFrame or has no site column.
    JoinError
        If a site has conflicting rows or a covariate column shadows an
        output column.

    Returns
    -------
    pandas.DataFrame
        Covariates with the site column renamed to ``site_id``, one row per site.
    """
    if not isinstance(covariates, pd.DataFrame):
        raise ValidationError(
            f"Covariates must be a pandas.DataFrame, got {type(covariates).__name__}."
        )
    if site_col not in covariates.columns:
        raise ValidationError(
            f"Covariate table missing site column '{site_col}'."
        )

    covs = covariates.drop_duplicates().rename(columns = {site_col: 'site_id'})

    collisions = sorted(set(covs.columns) & (set(OUTPUT_COLUMNS) - {'site_id'}))
    if collisions:
        raise JoinError(
            f"Covariate columns {collisions} collide with recurrent event columns, rename them first."
        )

    conflicting = covs.loc[covs['site_id'].duplicated(keep = False), 'site_id'].unique()
    if len(conflicting) > 0:
        raise JoinError(
            f"Covariate table has conflicting rows for {len(conflicting)} sites, "
            f"e.g. {', '.join(map(str, conflicting[:5]))}. Each site needs exactly one row."
        )

    return covs.reset_index(drop = True)

def _key_kind(values):
    '''Coarse kind of a site key column: datetime, numeric or text.'''
    if pd.api.types.is_datetime64_any_dtype(values):
        return 'datetime'
    if pd.api.types.is_bool_dtype(values):
        return 'boolean'
    if pd.api.types.is_numeric_dtype(values):
        return 'numeric'
    inferred = pd.api.types.infer_dtype(values, skipna = True)
    if inferred in ('integer', 'floating', 'mixed-integer-float', 'decimal'):
        return 'numeric'
    if inferred in ('datetime64', 'datetime'):
        return 'datetime'
    return 'text'

def relative_time(values, origin, time_unit):
    '''Time elapsed since ``origin`` expressed in ``time_unit`` lengths.

    For numeric timestamps (``time_unit`` None) this is a plain difference.'''
    elapsed = values - origin
    if time_unit is None:
        return elapsed
    return elapsed / time_unit

def assemble(site_records, time_unit = None):
    """
    Concatenate per site records into the recurrent event table.

    Parameters
    ----------
    site_records : iterable of list of survey_record
        Output of :func:`pyrecurrent.survey.survey_site`, one list per site,
        in site order.
    time_unit : pandas.Timedelta, optional
        Length of one output time unit for datetime timestamps, None for
        numeric timestamps.

    Returns
    -------
    pandas.DataFrame
        Table with ``OUTPUT_COLUMNS`` sorted by survey id and record number.
    """
    rows = [record for records in site_records for record in records]
    if not rows:
        logger.info("No surveys were opened, the recurrent event table is empty")
        return pd.DataFrame(columns = OUTPUT_COLUMNS)

    table = pd.DataFrame(rows, columns = survey_record._fields)

    # records arrive site by site and survey by survey, so order of first
    # appearance is the survey order
    table['survey_id'] = table.groupby(['site_id', 'survey'], sort = False).ngroup() + 1

    table['t_start'] = relative_time(table['time_0'], table['survey_start'], time_unit)
    table['t_stop'] = relative_time(table['time_1'], table['survey_start'], time_unit)

    table = table.astype({'event': 'int32',
                          'status': 'int32',
                          'enum': 'int32',
                          'survey_id': 'int64'})

    table.sort_values(by = ['survey_id', 'enum'], kind = 'mergesort', inplace = True)
    table.reset_index(drop = True, inplace = True)

    logger.info("Assembled %d records for %d surveys at %d sites",
                len(table), table['survey_id'].nunique(), table['site_id'].nunique())
    return table[OUTPUT_COLUMNS]

def join_covariates(table, covariates):
    """
    Left join checked site covariates onto every record of their site.

    Parameters
    ----------
    table : pandas.DataFrame
        Output of :func:`assemble`.
    covariates : pandas.DataFrame
        Output of :func:`check_covariates`.

    Raises
    ------
    JoinError
        If the site identifiers of the two tables are of different kinds
        (e.g. integers against strings).

    Returns
    -------
    pandas.DataFrame
        ``table`` with covariate columns appended. Sites without a covariate
        row get missing values.
    """
    covariate_cols = [col for col in covariates.columns if col != 'site_id']
    if table.empty:
        return table.reindex(columns = list(table.columns) + covariate_cols)

    table_kind = _key_kind(table['site_id'])
    covariate_kind = _key_kind(covariates['site_id'])
    if table_kind != covariate_kind:
        raise JoinError(
            f"Site identifiers do not match in type: detections use {table_kind} "
            f"({table['site_id'].dtype}), covariates use {covariate_kind} "
            f"({covariates['site_id'].dtype}). Convert one of the site columns first."
        )

    joined = table.merge(covariates,
                         on = 'site_id',
                         how = 'left',
                         validate = 'many_to_one')

    unmatched = set(table['site_id'].unique()) - set(covariates['site_id'])
    if unmatched:
        logger.warning("%d surveyed sites have no covariate row", len(unmatched))
    return joined
