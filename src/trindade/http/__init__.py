"""HTTP primitives: request, response, headers, query, forms and cookies."""

from trindade.http.cookies import CookieJar, SetCookie, parse_cookies
from trindade.http.forms import FormData, UploadFile, parse_form
from trindade.http.headers import Headers
from trindade.http.query import QueryParams
from trindade.http.request import Request
from trindade.http.response import Response, json_response, redirect, text_response

__all__ = [
    "CookieJar",
    "FormData",
    "Headers",
    "QueryParams",
    "Request",
    "Response",
    "SetCookie",
    "UploadFile",
    "json_response",
    "parse_cookies",
    "parse_form",
    "redirect",
    "text_response",
]
