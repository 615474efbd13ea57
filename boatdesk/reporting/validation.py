"""
Checks run on a coach report before anything is written.
All failures are user-facing and block the submission.
"""
from dataclasses import dataclass


class SubmissionError(ValueError):
    """A report submission the user has to fix before it can be saved."""


class ParticipantValidationError(SubmissionError):
    pass


class PossibleMemberError(SubmissionError):
    def __init__(self, matches: list["PossibleMember"]):
        lines = [f'"{m.input_name}" may be member: {", ".join(m.matches)}' for m in matches]
        super().__init__(
            "Some participants look like members but no member was selected:\n"
            + "\n".join(lines)
        )
        self.matches = matches


class NoReportObligationError(SubmissionError):
    pass


@dataclass
class PossibleMember:
    input_name: str
    matches: list[str]


def validate_participants(participants: list) -> list:
    """
    Drop blank-name rows, then require at least one row, positive durations,
    and a member id on every row marked as a member.
    """
    valid = [p for p in participants if (p.participant_name or "").strip()]

    if not valid:
        raise ParticipantValidationError("Add at least one participant")

    bad_duration = next((p for p in valid if p.duration_min is None or p.duration_min <= 0), None)
    if bad_duration:
        raise ParticipantValidationError(
            f'Duration for "{bad_duration.participant_name}" must be greater than 0'
        )

    unresolved = [p for p in valid if p.status == "pending" and not p.member_id]
    if unresolved:
        names = ", ".join(p.participant_name for p in unresolved)
        raise ParticipantValidationError(
            f"Marked as member but no member selected: {names}"
        )

    return valid


def check_possible_members(participants: list, members: list) -> list[PossibleMember]:
    """Guests whose typed name overlaps an existing member's display name."""
    possible = []
    for p in participants:
        if p.member_id:
            continue
        typed = p.participant_name.strip().lower()
        if not typed:
            continue
        matches = [
            m.display_name for m in members
            if m.display_name
            and (m.display_name.lower() in typed or typed in m.display_name.lower())
        ]
        if matches:
            possible.append(PossibleMember(p.participant_name, matches))
    return possible


def participant_status(member_id) -> str:
    return "pending" if member_id else "not_applicable"
