# -*- coding: utf-8 -*-
"""
Recurrent Event Data Formatting Module
======================================

This module formats classified camera trap detections into counting-process
style recurrent event tables for piece-wise exponential survival models.

Classes
-------
recurrent_event : Survey based recurrent event formatting
    Opens a survey at every primary species detection, records secondary
    species detections as recurrent events and censors the survey when a
    tertiary species arrives, another primary detection retriggers it, or
    its administrative duration / the study end date is reached.

Typical Usage
-------------
>>> import pandas as pd
>>> import pyrecurrent
>>> detections = pd.read_csv('camera_detections.csv', parse_dates = ['DateTime'])
>>> ret = pyrecurrent.recurrent_event(detections,
...                                   primary = {'Red Fox'},
...                                   secondary = {'Badger'},
...                                   survey_duration = 30)
>>> table = ret.data_prep(n_jobs = 4)
>>> stats = ret.summary()
>>> table.to_csv('recurrent_events.csv', index = False)  # hand over to the PEM step

Notes
-----
- Times in ``t_start``/``t_stop`` run from the start of each survey. With
  datetime timestamps they are fractional days (see ``time_unit``), with
  numeric timestamps they keep the timestamp's unit. Nothing is rounded or
  binned, splitting intervals on a time grid belongs to the model step.
- Detections recorded before ``study_start_date`` or after
  ``survey_end_date`` are dropped before the scan.
- Detections sharing a timestamp at a site are processed in input order.
"""

# import modules required for function dependencies
import logging
import warnings
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
import numpy as np
from tqdm import tqdm
from pyrecurrent.assembler import assemble, check_covariates, join_covariates
from pyrecurrent.classifier import classify, IGNORED
from pyrecurrent.config import resolve_config
from pyrecurrent.survey import survey_site, DURATION_LIMIT, STUDY_END
from pyrecurrent.validation import (ConfigurationError,
                                    DegenerateIntervalWarning,
                                    validate_columns,
                                    validate_labels,
                                    validate_timestamps)

logger = logging.getLogger(__name__)

class recurrent_event():
    """
    Survey based Recurrent Event Data Formatter

    Formats camera trap detections into one row per recurrent event interval,
    grouped into surveys, ready for a piece-wise exponential data
    transformation.

    Parameters
    ----------
    detections : pd.DataFrame
        Detection table with a site, timestamp and species column.

    primary : iterable
        Species labels that open a survey.
        Example: {'Red Fox'}

    secondary : iterable
        Species labels whose detections are the recurrent events.
        Example: {'Badger', 'Pine Marten'}

    survey_duration : pd.Timedelta, str or number
        Administrative cap on survey length from its start. A number counts
        ``time_unit`` lengths for datetime timestamps.

    tertiary : iterable, optional
        Species labels that censor an open survey. Default None, meaning
        every observed species not listed as primary, secondary or ignored.

    ignored : iterable, optional
        Species labels dropped before the scan. Default None.

    survey_end_date : optional
        End of the study. Default None, the last timestamp in the table.

    study_start_date : optional
        Detections before this instant are dropped. Default None.

    covariates : pd.DataFrame, optional
        Static site covariates, one row per site, keyed on ``site_col``.

    time_unit : str or pd.Timedelta, optional
        Output time unit for datetime timestamps. Default '1D'.

    site_col, time_col, species_col : str, optional
        Column names. Default 'Site', 'DateTime', 'Species'.

    Attributes
    ----------
    config : pyrecurrent.config.survey_config
        Resolved run parameters shared by every site scan.

    detection_data : pd.DataFrame
        Classified detections inside the study window, sorted on time with
        ties in input order.

    sites : np.ndarray
        Every site present in the input, surveyed or not.

    master_event_table : pd.DataFrame
        Final formatted output, see :mod:`pyrecurrent.assembler` for columns.
        None until :meth:`data_prep` runs.

    Raises
    ------
    ConfigurationError
        Overlapping species sets, empty primary set, non-positive survey
        duration or unknown column names.
    ValidationError
        Empty table, missing columns, unparseable timestamps.
    JoinError
        Ambiguous covariate table.

    Examples
    --------
    >>> ret = recurrent_event(detections,
    ...                       primary = {'Red Fox'},
    ...                       secondary = {'Badger'},
    ...                       tertiary = {'Domestic Dog', 'Human'},
    ...                       survey_duration = '14D',
    ...                       survey_end_date = '2023-09-30',
    ...                       covariates = site_table)
    >>> table = ret.data_prep()
    """
    def __init__(self,
                 detections,
                 primary,
                 secondary,
                 survey_duration,
                 tertiary = None,
                 ignored = None,
                 survey_end_date = None,
                 study_start_date = None,
                 covariates = None,
                 time_unit = '1D',
                 site_col = 'Site',
                 time_col = 'DateTime',
                 species_col = 'Species'):

        # everything is checked before any site is scanned
        validate_columns(detections, site_col, time_col, species_col)
        data = detections[[site_col, time_col, species_col]].copy()
        data[time_col] = validate_timestamps(data[time_col])
        validate_labels(data, site_col, species_col)

        self.config = resolve_config(data,
                                     primary,
                                     secondary,
                                     survey_duration,
                                     tertiary = tertiary,
                                     ignored = ignored,
                                     survey_end_date = survey_end_date,
                                     study_start_date = study_start_date,
                                     time_unit = time_unit,
                                     site_col = site_col,
                                     time_col = time_col,
                                     species_col = species_col)

        if covariates is not None:
            self.covariates = check_covariates(covariates, site_col)
        else:
            self.covariates = None

        self.sites = data[site_col].unique()
        logger.info("Loaded %d detections from %d sites", len(data), len(self.sites))

        data['category'] = classify(data[species_col],
                                    self.config.partition,
                                    self.config.default_category)
        data['input_order'] = np.arange(len(data))

        # drop what can never reach a survey
        before = len(data)
        data = data[data['category'] != IGNORED]
        logger.info("Dropped %d detections of ignored species", before - len(data))

        before = len(data)
        data = data[data[time_col] <= self.config.survey_end_date]
        if self.config.study_start_date is not None:
            data = data[data[time_col] >= self.config.study_start_date]
        dropped = before - len(data)
        if dropped:
            logger.info("Dropped %d detections outside the study window", dropped)

        data = data.sort_values(by = [time_col, 'input_order'], kind = 'mergesort')
        self.detection_data = data.reset_index(drop = True)
        self.master_event_table = None

    def site_detections(self):
        '''Yield (site, timestamps, categories) for every site, in site order.'''
        config = self.config
        for site, site_dat in self.detection_data.groupby(config.site_col, sort = True):
            yield site, site_dat[config.time_col].tolist(), site_dat['category'].tolist()

    def data_prep(self, n_jobs = 1, progress = False):
        """
        Scan every site and assemble the recurrent event table.

        Parameters
        ----------
        n_jobs : int, optional
            Number of worker processes. 1 (default) scans sites in this
            process. Sites share no state, so they are simply mapped over a
            process pool and the survey ids are assigned afterwards.
        progress : bool, optional
            Show a progress bar over sites. Default False.

        Returns
        -------
        pd.DataFrame
            The recurrent event table, also stored as ``master_event_table``.
        """
        if isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)) or n_jobs < 1:
            raise ConfigurationError(f"n_jobs must be a positive integer, got {n_jobs!r}")

        config = self.config
        groups = list(self.site_detections())
        logger.info("Scanning %d sites with detections (n_jobs=%d)", len(groups), n_jobs)

        if n_jobs == 1 or len(groups) < 2:
            site_records = [survey_site(site,
                                        times,
                                        categories,
                                        config.survey_duration,
                                        config.survey_end_date)
                            for site, times, categories in tqdm(groups,
                                                                desc = "Surveying sites",
                                                                unit = "site",
                                                                disable = not progress)]
        else:
            sites, times, categories = zip(*groups)
            with ProcessPoolExecutor(max_workers = n_jobs) as executor:
                results = executor.map(survey_site,
                                       sites,
                                       times,
                                       categories,
                                       repeat(config.survey_duration),
                                       repeat(config.survey_end_date))
                site_records = list(tqdm(results,
                                         total = len(groups),
                                         desc = "Surveying sites",
                                         unit = "site",
                                         disable = not progress))

        # every site is materialized before ids are assigned
        table = assemble(site_records, config.time_unit)
        self._warn_degenerate(table)

        if self.covariates is not None:
            table = join_covariates(table, self.covariates)

        self.master_event_table = table
        return table

    def _warn_degenerate(self, table):
        '''Surface zero length records to the caller, they are kept in the table.'''
        if table.empty:
            return
        zero = table[table.time_0 == table.time_1]
        if zero.empty:
            return

        capped = zero[(zero.event == 0) & zero.closure.isin([DURATION_LIMIT, STUDY_END])]
        if len(capped) > 0:
            warnings.warn(
                f"{len(capped)} surveys were closed with a zero length terminal record "
                f"because their administrative cap coincided with the last recorded "
                f"event time (surveys {', '.join(map(str, capped.survey_id.values[:5]))}).",
                DegenerateIntervalWarning,
                stacklevel = 3
            )

        simultaneous = len(zero) - len(capped)
        if simultaneous > 0:
            warnings.warn(
                f"{simultaneous} zero length records were emitted for detections "
                f"sharing a timestamp.",
                DegenerateIntervalWarning,
                stacklevel = 3
            )

    # generate summary statistics
    def summary(self, print_summary = True):
        """
        Calculate descriptive statistics of the recurrent event table.

        Runs :meth:`data_prep` first if it has not been run.

        Parameters
        ----------
        print_summary : bool, optional
            Print the statistics. Default True.

        Returns
        -------
        dict
            site_count, surveyed_site_count, survey_count, record_count,
            event_count, min/median/max_events_per_survey, closure_counts,
            censored_share and survey_duration_summary.
        """
        if self.master_event_table is None:
            self.data_prep()
        table = self.master_event_table

        surveys = (
            table
            .groupby('survey_id')
            .agg(site_id = ('site_id', 'first'),
                 events = ('event', 'sum'),
                 duration = ('t_stop', 'max'),
                 status = ('status', 'first'),
                 closure = ('closure', 'first'))
        )

        events = surveys['events'].astype(float)
        summary_stats = {
            "site_count": len(self.sites),
            "surveyed_site_count": int(surveys['site_id'].nunique()),
            "survey_count": len(surveys),
            "record_count": len(table),
            "event_count": int(events.sum()),
            "min_events_per_survey": events.min(),
            "median_events_per_survey": events.median(),
            "max_events_per_survey": events.max(),
            "closure_counts": surveys['closure'].value_counts(),
            "censored_share": surveys['status'].astype(float).mean(),
            "survey_duration_summary": surveys['duration'].astype(float).agg(['min', 'median', 'max'])
        }

        if print_summary:
            print("-" * 110)
            print("Recurrent Event Data Manage Complete")
            print("-" * 110 + "\n")

            print("--------------------------------------- SURVEY SUMMARY STATISTICS -------------------------------------------\n")
            print(f"{summary_stats['surveyed_site_count']} of {summary_stats['site_count']} sites were surveyed at least once.\n")
            print(f"In total there were {summary_stats['survey_count']} surveys and {summary_stats['event_count']} recurrent events "
                  f"in {summary_stats['record_count']} records.\n")

            print("The number of events per survey is best described with min, median, and maximum statistics:")
            print(f"  min: {summary_stats['min_events_per_survey']}, "
                  f"median: {summary_stats['median_events_per_survey']}, "
                  f"max: {summary_stats['max_events_per_survey']}\n")

            print("Surveys closed by:")
            print(summary_stats['closure_counts'], "\n")

            print(f"Share of surveys censored by a tertiary species: {summary_stats['censored_share']:.3f}\n")

            print("Survey durations:")
            print(summary_stats['survey_duration_summary'], "\n")

        return summary_stats

def recurrent_event_table(detections, primary, secondary, survey_duration, n_jobs = 1, progress = False, **kwargs):
    """
    Build the recurrent event table in one call.

    Keyword arguments are passed to :class:`recurrent_event`.

    >>> table = recurrent_event_table(detections, {'Red Fox'}, {'Badger'}, 30)
    """
    ret = recurrent_event(detections, primary, secondary, survey_duration, **kwargs)
    return ret.data_prep(n_jobs = n_jobs, progress = progress)
