"""Revo: a personal reflection journal with weekly and monthly AI summaries."""
