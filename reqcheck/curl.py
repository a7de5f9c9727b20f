"""Equivalent bash command lines for compiled requests."""

from aiohttp.abc import AbstractCookieJar

from reqcheck.compiler import CompiledRequest
from reqcheck.multipart import strip_file_prefix


def escape_for_bash(text: str) -> str:
    """Single-quote text for bash.

    Single quotes cannot appear inside single quoted strings, so text is split
    at them and the pieces are joined with a double quoted single quote:
    foo'bar becomes 'foo'"'"'bar'.
    """
    return '"\'"'.join(f"'{part}'" for part in text.split("'"))


def nontrivial_data(text: str) -> bool:
    """Report whether text contains control characters."""
    return any(char < " " or char == "\x7f" for char in text)


def _printf_escape(text: str) -> str:
    escaped = []
    for char in text:
        if " " <= char <= "~" and char not in "\"'\\%":
            escaped.append(char)
        else:
            escaped.extend(f"\\x{byte:02x}" for byte in char.encode())
    return "".join(escaped)


def curl_call(compiled: CompiledRequest, jar: AbstractCookieJar | None = None) -> str:
    """Produce a curl invocation sending the same request as compiled.

    Bodies containing control characters are written to a temporary file
    with printf first and sent from there.
    """
    request = compiled.request
    call = "curl"

    nontrivial = nontrivial_data(compiled.body_text)
    if nontrivial:
        call = (
            "tmp=$(mktemp)\n"
            f'printf "{_printf_escape(compiled.body_text)}" > $tmp\n'
            "curl"
        )

    call += f" -X {compiled.method}"

    skipped = {"cookie", "authorization"}
    if request.params and request.params_as in ("body", "multipart"):
        # curl encodes the parameters itself.
        skipped.add("content-type")
    for name, value in compiled.headers.items():
        if name.lower() in skipped:
            continue
        if value:
            call += f" -H {escape_for_bash(f'{name}: {value}')}"
        else:
            call += f" -H {name};"

    if request.basic_auth_user:
        credentials = f"{request.basic_auth_user}:{request.basic_auth_pass}"
        call += f" -u {escape_for_bash(credentials)}"

    cookies = [f"{cookie.name}={cookie.value}" for cookie in request.cookies]
    if jar is not None:
        cookies.extend(
            f"{name}={morsel.value}"
            for name, morsel in jar.filter_cookies(compiled.url).items()
        )
    if cookies:
        call += f" -H {escape_for_bash('Cookie: ' + '; '.join(cookies))}"

    url = str(compiled.url)
    if request.params_as in ("body", "multipart"):
        flag = "-F" if request.params_as == "multipart" else "-d"
        for name, values in request.params.items():
            for value in values:
                # @vfile: parameters refer to the file before substitution.
                argument = f"{name}={strip_file_prefix(value)}"
                call += f" {flag} {escape_for_bash(argument)}"

    if request.body and compiled.method in ("POST", "PUT", "PATCH"):
        if nontrivial:
            call += ' --data-binary "@$tmp"'
        else:
            call += f" --data-binary {escape_for_bash(strip_file_prefix(request.body))}"

    return call + f" {escape_for_bash(url)}"
