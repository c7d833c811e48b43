"""Demo IVR: a main menu that routes callers to sales, support or hours.

Each class is a state. ``MainMenu`` is both routable and normal, ``Voicemail``
only processes the recording callback, and the rest are plain routable
states.
"""

from __future__ import annotations

from typing import Any

from twilio.twiml.voice_response import Gather, VoiceResponse

VOICE = "Polly.Joanna"


class Goodbye:
    name = "goodbye"
    uri = "/goodbye"

    async def render(self, context, session, asset_url, raw_input) -> VoiceResponse:
        response = VoiceResponse()
        response.say("Thank you for calling ACME. Goodbye.", voice=VOICE)
        response.hangup()
        return response


class BusinessHours:
    name = "hours"
    uri = "/hours"

    def __init__(self, menu_uri: str) -> None:
        self._menu_uri = menu_uri

    async def render(self, context, session, asset_url, raw_input) -> VoiceResponse:
        response = VoiceResponse()
        response.say("We are open Monday to Friday, nine to five.", voice=VOICE)
        response.redirect(self._menu_uri, method="POST")
        return response


class Support:
    name = "support"
    uri = "/support"

    async def render(self, context, session, asset_url, raw_input) -> VoiceResponse:
        response = VoiceResponse()
        response.say("Please hold while we connect you to support.", voice=VOICE)
        response.enqueue("support", wait_url=asset_url("/hold-music"), wait_url_method="GET")
        return response


class Voicemail:
    """Receives the recording callback from the sales line."""

    name = "voicemail"
    process_transition_uri = "/voicemail/process"

    def __init__(self, goodbye: Goodbye) -> None:
        self._goodbye = goodbye

    async def transition_out(self, session: dict[str, Any], raw_input) -> tuple[dict[str, Any], Any]:
        recording = raw_input.get("RecordingUrl")
        if recording:
            session["voicemail_url"] = recording
        return session, self._goodbye


class Sales:
    name = "sales"
    uri = "/sales"

    def __init__(self, voicemail: Voicemail) -> None:
        self._voicemail = voicemail

    async def render(self, context, session, asset_url, raw_input) -> VoiceResponse:
        response = VoiceResponse()
        response.say(
            "All our sales representatives are busy. Please leave a message after the tone.",
            voice=VOICE,
        )
        response.record(
            action=self._voicemail.process_transition_uri,
            method="POST",
            max_length=120,
        )
        return response


class InvalidSelection:
    name = "invalid_selection"
    uri = "/invalid-selection"

    def __init__(self, menu_uri: str) -> None:
        self._menu_uri = menu_uri

    async def render(self, context, session, asset_url, raw_input) -> VoiceResponse:
        response = VoiceResponse()
        response.say("Sorry, that is not a valid option.", voice=VOICE)
        response.redirect(self._menu_uri, method="POST")
        return response


class MainMenu:
    name = "main_menu"
    uri = "/"
    process_transition_uri = "/main-menu/process"
    max_attempts = 3

    def __init__(self) -> None:
        self.choices: dict[str, Any] = {}
        self.invalid: Any = None
        self.goodbye: Any = None

    async def render(self, context, session, asset_url, raw_input) -> VoiceResponse:
        response = VoiceResponse()
        if not session.get("greeted"):
            response.say("Welcome to ACME.", voice=VOICE)
        gather = Gather(
            action=self.process_transition_uri,
            method="POST",
            num_digits=1,
            action_on_empty_result=True,
        )
        gather.say(
            "For sales, press one. For support, press two. "
            "For our business hours, press three.",
            voice=VOICE,
        )
        response.append(gather)
        return response

    async def transition_out(self, session: dict[str, Any], raw_input) -> tuple[dict[str, Any], Any]:
        session["greeted"] = True
        digits = (raw_input.get("Digits") or "").strip()
        next_state = self.choices.get(digits)
        if next_state is not None:
            session["menu_attempts"] = 0
            session["last_choice"] = digits
            return session, next_state

        attempts = int(session.get("menu_attempts", 0)) + 1
        session["menu_attempts"] = attempts
        if attempts >= self.max_attempts:
            return session, self.goodbye
        return session, self.invalid


def build_states() -> list[Any]:
    """Return the demo flow's states in declaration order."""

    menu = MainMenu()
    goodbye = Goodbye()
    voicemail = Voicemail(goodbye)
    sales = Sales(voicemail)
    support = Support()
    hours = BusinessHours(menu.uri)
    invalid = InvalidSelection(menu.uri)

    menu.choices = {"1": sales, "2": support, "3": hours}
    menu.invalid = invalid
    menu.goodbye = goodbye

    return [menu, sales, voicemail, support, hours, invalid, goodbye]
