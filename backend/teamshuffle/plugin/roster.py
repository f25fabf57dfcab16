from teamshuffle.planning.models import Pairing

# The leading blank braille character keeps the chat client from
# collapsing the first line break.
TEAMS_LIST_HEADER = "⠀\nArena Teams"
TEAM_SEPARATOR = " & "


def format_roster(pairing: Pairing, header: str = TEAMS_LIST_HEADER) -> str:
    """Render the announced teams, one numbered line per team."""
    lines = [f"{header}:"]
    lines.extend(f"{number}: {TEAM_SEPARATOR.join(team)}" for number, team in enumerate(pairing.teams, start=1))
    return "\n".join(lines)
