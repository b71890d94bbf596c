from typing import Iterable, List


def format_seconds(time: int) -> str:
    """Convert the given amount of seconds into a hh:mm:ss format"""
    time = int(time)

    hours = time // 3600
    time %= 3600
    minutes = time // 60
    seconds = time % 60

    if hours > 0:
        return f"{hours}:{minutes:02}:{seconds:02}"
    return f"{minutes}:{seconds:02}"


def unique_names(names: Iterable[str]) -> List[str]:
    """Strip names, drop blank ones and remove duplicates while keeping order"""
    stripped = (name.strip() for name in names if name)
    return list(dict.fromkeys(name for name in stripped if name))
