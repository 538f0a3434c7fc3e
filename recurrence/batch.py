import logging

from recurrence.generator import generate_occurrences

logger = logging.getLogger(__name__)


def expand_all(entries, window_start, window_end):
    """
    Expand every entry for the window and flatten the results.

    Output follows the order of ``entries``; each entry's own occurrences are
    chronological but the list as a whole is NOT re-sorted across entries.
    Callers that need a single timeline sort it themselves.
    """
    expanded = []
    for entry in entries:
        if not entry.repeats:
            expanded.append(entry)
            continue
        try:
            expanded.extend(generate_occurrences(entry, window_start, window_end))
        except (TypeError, ValueError, OverflowError) as exc:
            # One broken record must not blank the whole calendar.
            logger.warning("Expansion failed for event %s, showing it once: %s", entry.id, exc)
            expanded.append(entry)
    return expanded
