# -*- coding: utf-8 -*-
"""
Survey State Machine
====================

Scans the time ordered, classified detections of a single site and turns
them into recurrent event records.

A site is either *closed* (no survey running) or *open*. A primary detection
opens a survey; secondary detections inside an open survey are the recurrent
events; the survey ends when it is retriggered by another primary detection,
censored by a tertiary detection, or reaches its administrative cap
``min(start_time + survey_duration, survey_end_date)``.

Transitions are looked up in ``TRANSITIONS`` keyed on (state kind, category):

========  ==========  ==========================================================
state     category    action
========  ==========  ==========================================================
closed    primary     open a survey at the detection
closed    secondary   ignored, no survey to attach it to
closed    tertiary    ignored
open      primary     terminal record (event 0, status 0), open a new survey
open      secondary   event record (event 1), survey stays open
open      tertiary    terminal record (event 0, status 1), site closes
either    ignored     nothing
========  ==========  ==========================================================

Before a detection is applied to an open survey, the survey is closed at its
cap if the detection falls strictly beyond it. A detection exactly at the cap
still belongs to the survey. Records are intervals ``(time_0, time_1]`` on
the absolute time axis; relative times are added by the assembler.

Detections sharing a timestamp are applied in the order given, the caller
sorts stably on time so ties keep input order.
"""

import logging
from collections import namedtuple
from pyrecurrent.classifier import PRIMARY, SECONDARY, TERTIARY, IGNORED

logger = logging.getLogger(__name__)

# closure reasons
RETRIGGERED = 'retriggered_by_primary'
CENSORED = 'censored_by_tertiary'
DURATION_LIMIT = 'administrative_duration_limit'
STUDY_END = 'study_end_date'

CLOSURE_REASONS = (RETRIGGERED, CENSORED, DURATION_LIMIT, STUDY_END)

# terminal censoring status of a survey, by closure reason
CLOSURE_STATUS = {RETRIGGERED: 0,
                  CENSORED: 1,
                  DURATION_LIMIT: 0,
                  STUDY_END: 0}

OPEN = 'open'
CLOSED = 'closed'

survey_state = namedtuple('survey_state', ['kind',
                                           'start_time',
                                           'last_event_time',
                                           'enum_counter'])

CLOSED_STATE = survey_state(CLOSED, None, None, 0)

survey_record = namedtuple('survey_record', ['site_id',
                                             'survey',
                                             'survey_start',
                                             'time_0',
                                             'time_1',
                                             'event',
                                             'status',
                                             'enum',
                                             'closure'])

TRANSITIONS = {(CLOSED, PRIMARY): 'open_survey',
               (CLOSED, SECONDARY): 'ignore',
               (CLOSED, TERTIARY): 'ignore',
               (CLOSED, IGNORED): 'ignore',
               (OPEN, PRIMARY): 'retrigger',
               (OPEN, SECONDARY): 'record_event',
               (OPEN, TERTIARY): 'censor',
               (OPEN, IGNORED): 'ignore'}

class survey_machine():
    '''
    Per site survey state machine.

    Parameters
    ----------
    site_id : hashable
        Site the detections belong to, copied onto every record.
    survey_duration :
        Administrative cap on survey length, same type as a timestamp
        difference (``pandas.Timedelta`` or a number).
    survey_end_date :
        End of the study, same type as a timestamp.

    Attributes
    ----------
    state : survey_state
        ``CLOSED_STATE`` or an open state carrying start time, cursor and
        event counter.
    records : list of survey_record
        Records of closed surveys, final.
    pending : list of survey_record
        Event records of the open survey. Their status is only known once
        the survey closes.
    '''
    def __init__(self, site_id, survey_duration, survey_end_date):
        self.site_id = site_id
        self.survey_duration = survey_duration
        self.survey_end_date = survey_end_date
        self.state = CLOSED_STATE
        self.records = []
        self.pending = []
        self.surveys = 0
        self.degenerate = 0

    def cap(self):
        '''Administrative cap of the open survey and the reason it binds.'''
        duration_cap = self.state.start_time + self.survey_duration
        if duration_cap <= self.survey_end_date:
            return duration_cap, DURATION_LIMIT
        return self.survey_end_date, STUDY_END

    def step(self, time_stamp, category):
        '''Apply one detection.'''
        if self.state.kind == OPEN and category != IGNORED:
            cap, reason = self.cap()
            if time_stamp > cap:
                self.close(cap, reason)
        action = getattr(self, TRANSITIONS[(self.state.kind, category)])
        action(time_stamp)

    def ignore(self, time_stamp):
        pass

    def open_survey(self, time_stamp):
        self.surveys += 1
        self.state = survey_state(OPEN, time_stamp, time_stamp, 0)

    def retrigger(self, time_stamp):
        self.close(time_stamp, RETRIGGERED)
        self.open_survey(time_stamp)

    def censor(self, time_stamp):
        self.close(time_stamp, CENSORED)

    def record_event(self, time_stamp):
        state = self.state
        self.pending.append(survey_record(self.site_id,
                                          self.surveys,
                                          state.start_time,
                                          state.last_event_time,
                                          time_stamp,
                                          1,
                                          None,
                                          state.enum_counter + 1,
                                          None))
        self.state = state._replace(last_event_time = time_stamp,
                                    enum_counter = state.enum_counter + 1)

    def close(self, time_stamp, reason):
        '''Emit the terminal record of the open survey and finalize it.

        A cap at or before the cursor yields a zero length record at the
        cursor rather than an interval running backwards.'''
        state = self.state
        time_1 = max(time_stamp, state.last_event_time)
        if time_1 == state.last_event_time:
            self.degenerate += 1
            logger.debug("Site %s survey %d: zero length terminal record at %s (%s)",
                         self.site_id, self.surveys, time_1, reason)

        status = CLOSURE_STATUS[reason]
        terminal = survey_record(self.site_id,
                                 self.surveys,
                                 state.start_time,
                                 state.last_event_time,
                                 time_1,
                                 0,
                                 status,
                                 state.enum_counter + 1,
                                 reason)
        for record in self.pending:
            self.records.append(record._replace(status = status, closure = reason))
        self.records.append(terminal)
        self.pending = []
        self.state = CLOSED_STATE

    def finish(self):
        '''Close any survey still open at the end of the data at its cap.'''
        if self.state.kind == OPEN:
            cap, reason = self.cap()
            self.close(cap, reason)
        return self.records

def survey_site(site_id, time_stamps, categories, survey_duration, survey_end_date):
    """
    Run the survey state machine over one site's detections.

    Module level so it can be shipped to worker processes.

    Parameters
    ----------
    site_id : hashable
        Site identifier.
    time_stamps : sequence
        Detection timestamps in non-decreasing order.
    categories : sequence of str
        Category of each detection, aligned with ``time_stamps``.
    survey_duration, survey_end_date :
        Administrative limits, see :class:`survey_machine`.

    Returns
    -------
    list of survey_record
        Records of every survey at the site in time order; empty when the
        site has no primary detection.
    """
    machine = survey_machine(site_id, survey_duration, survey_end_date)
    for time_stamp, category in zip(time_stamps, categories):
        machine.step(time_stamp, category)
    records = machine.finish()
    logger.debug("Site %s: %d detections, %d surveys, %d records",
                 site_id, len(time_stamps), machine.surveys, len(records))
    return records
