from django.template.loader import render_to_string
from django.template import TemplateDoesNotExist


def render_email(template_base, context):
    """
    Render ``<template_base>_subject.txt``, ``.html`` and optional ``.txt``.
    """
    subject = render_to_string(f"{template_base}_subject.txt", context)
    subject = " ".join(subject.split())
    html_body = render_to_string(f"{template_base}.html", context)
    try:
        text_body = render_to_string(f"{template_base}.txt", context)
    except TemplateDoesNotExist:
        text_body = None
    return subject, text_body, html_body
