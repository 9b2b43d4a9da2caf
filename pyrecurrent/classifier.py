# -*- coding: utf-8 -*-
"""
Species category assignment
===========================

Every detection plays exactly one role in a survey:

- primary : the focal species, a detection opens a survey
- secondary : the recurrent event of interest inside a survey
- tertiary : a competing species whose arrival censors the survey
- ignored : dropped before the survey scan

Roles are assigned from caller supplied label sets, which must not overlap.
When no tertiary set is given, every label that is neither primary, secondary
nor ignored is tertiary. When an explicit tertiary set is given, unlisted
labels are ignored.

>>> from pyrecurrent.classifier import classify_species
>>> classify_species('Red Fox', primary = {'Red Fox'}, secondary = {'Badger'})
'primary'
>>> classify_species('Roe Deer', primary = {'Red Fox'}, secondary = {'Badger'})
'tertiary'
"""

import logging
from pyrecurrent.validation import ConfigurationError

logger = logging.getLogger(__name__)

PRIMARY = 'primary'
SECONDARY = 'secondary'
TERTIARY = 'tertiary'
IGNORED = 'ignored'

CATEGORIES = (PRIMARY, SECONDARY, TERTIARY, IGNORED)

def label_set(labels, name = 'species'):
    '''Coerce a caller supplied collection of labels into a frozenset.

    A bare string is one label, not a collection of characters.'''
    if labels is None:
        return frozenset()
    if isinstance(labels, str):
        return frozenset([labels])
    try:
        return frozenset(labels)
    except TypeError:
        raise ConfigurationError(
            f"The {name} set must be a collection of species labels, "
            f"got {type(labels).__name__}."
        )

def check_disjoint(**label_sets):
    '''Raise ConfigurationError if any label belongs to more than one set.'''
    names = list(label_sets)
    for i, first in enumerate(names):
        for second in names[i + 1:]:
            shared = label_sets[first] & label_sets[second]
            if shared:
                raise ConfigurationError(
                    f"Species {sorted(map(str, shared))} appear in both the "
                    f"{first} and {second} sets, category sets must be disjoint."
                )
    return True

def _category_sets(primary, secondary, tertiary, ignored):
    '''Return the four label sets in category order plus the category of
    unlisted labels.'''
    fallback = IGNORED if tertiary is not None else TERTIARY
    sets = {PRIMARY: label_set(primary, PRIMARY),
            SECONDARY: label_set(secondary, SECONDARY),
            TERTIARY: label_set(tertiary, TERTIARY),
            IGNORED: label_set(ignored, IGNORED)}
    check_disjoint(**sets)
    return sets, fallback

def classify_species(label, primary, secondary, tertiary = None, ignored = None):
    """
    Assign one species label to its survey role.

    Parameters
    ----------
    label : hashable
        Species label of a single detection.
    primary, secondary : iterable
        Labels that open surveys and that count as recurrent events.
    tertiary : iterable, optional
        Labels that censor an open survey. If None (default), every label
        not listed elsewhere is tertiary.
    ignored : iterable, optional
        Labels dropped from the analysis.

    Returns
    -------
    str
        One of ``'primary'``, ``'secondary'``, ``'tertiary'``, ``'ignored'``.

    Raises
    ------
    ConfigurationError
        If the label sets overlap.
    """
    sets, fallback = _category_sets(primary, secondary, tertiary, ignored)
    for category in CATEGORIES:
        if label in sets[category]:
            return category
    return fallback

def species_partition(observed, primary, secondary, tertiary = None, ignored = None):
    """
    Build the label -> category mapping for a run.

    Parameters
    ----------
    observed : iterable
        Species labels present in the detection table.
    primary, secondary, tertiary, ignored :
        As for :func:`classify_species`.

    Returns
    -------
    dict
        Mapping of every observed and every listed label to its category.
        When ``tertiary`` is None, observed labels outside the other sets
        are mapped to tertiary, i.e. the tertiary set defaults to the
        complement of the listed labels within the data.
    """
    sets, fallback = _category_sets(primary, secondary, tertiary, ignored)
    if not sets[PRIMARY]:
        raise ConfigurationError("At least one primary species is required to open surveys.")

    partition = {}
    for category in CATEGORIES:
        for label in sets[category]:
            partition[label] = category

    unlisted = set(observed) - set(partition)
    for label in unlisted:
        partition[label] = fallback

    if unlisted:
        logger.info("%d unlisted species treated as %s", len(unlisted), fallback)

    missing_primary = sets[PRIMARY] - set(observed)
    if missing_primary:
        logger.warning("Primary species never detected: %s", sorted(map(str, missing_primary)))

    return partition

def classify(species, partition, default = IGNORED):
    '''Map a species column onto survey categories.

    Labels absent from the partition fall back to ``default``.'''
    return species.astype(object).map(partition).fillna(default)
