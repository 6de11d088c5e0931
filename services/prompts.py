"""Prompt helpers for chat, analysis, and generation requests."""

from __future__ import annotations

import json
from typing import List

from models.session_models import Record

TASK_CHAT = "chat"
TASK_CSV = "csv"
TASK_IMAGE = "image"
TASK_PDF = "pdf"

DEFAULT_CSV_PROMPT = "Analyze the following CSV data."
DEFAULT_IMAGE_PROMPT = "Describe this image."
DEFAULT_PDF_PROMPT = "Summarize the content of the PDF."
EMBEDDED_CSV_NOTICE = "Detected objects/attributes as CSV. Please download."


def chat_system_prompt(current_datetime: str) -> str:
	"""Return the general assistant prompt, grounded with the current date/time."""
	return (
		"You are a helpful assistant. I have access to real-time information such as the current date, "
		f"time, and weather. {current_datetime}\n"
		"If, based on the conversational context, you determine a CSV should be generated, respond with: "
		'"CSV_REQUEST: [Your detailed prompt for CSV generation here]".\n'
		"If you determine an image should be generated, respond with: "
		'"IMAGE_REQUEST: [Your detailed prompt for image generation here]".\n'
		"Otherwise, keep your responses concise and relevant to the conversation."
	)


def csv_analyst_system_prompt() -> str:
	"""Return the CSV analyst instructions."""
	return (
		"You are an expert CSV data analyst and transformer. "
		"The user has provided a CSV file, which has been converted to JSON for you. "
		"Your primary task is to analyze this data and respond to the user's request.\n"
		"If the user asks you to modify, filter, summarize, or extract specific information into a NEW CSV, "
		'you MUST respond with the exact phrase "CSV_REQUEST: [Your detailed prompt for generating the '
		'transformed CSV from the previously analyzed data]". '
		'The prompt you provide after "CSV_REQUEST:" should be precise and include all necessary instructions '
		"for a separate CSV generation step. For example: \"CSV_REQUEST: Filter the provided data for users in "
		"'Marketing' department and include only 'Name' and 'Email' columns.\"\n"
		"If you determine a numerical summary is needed, provide that directly as text.\n"
		"If the user asks you to create an image based on the data, respond with: "
		'"IMAGE_REQUEST: [Your detailed prompt for generating the image, e.g., \'A bar chart of sales data '
		"from the CSV, based on the provided data.']\"\n"
		"Otherwise, provide a concise textual response summarizing your findings."
	)


def image_analyst_system_prompt() -> str:
	"""Return the image analyst instructions."""
	return (
		"You are a helpful assistant capable of analyzing images. "
		"The user has provided an image for analysis. "
		"Your task is to describe the image or answer questions related to its content.\n"
		'If the user asks you to generate a new image (e.g., "draw a dog in this style", '
		'"remove background from this image"), you MUST respond with the exact phrase '
		'"IMAGE_REQUEST: [Your detailed prompt for generating the image, possibly transforming the '
		'previously analyzed image]". The prompt you provide after "IMAGE_REQUEST:" should be precise '
		"and reference the original image context if applicable.\n"
		"If the user asks you to extract information into a CSV based on the image, respond with: "
		'"CSV_REQUEST: [Your detailed prompt for CSV generation based on image analysis, e.g., '
		"'List all objects detected in the image as a CSV.']\"\n"
		"Otherwise, provide a concise textual response summarizing your findings."
	)


def document_analyst_system_prompt() -> str:
	"""Return the document (PDF) analyst instructions."""
	return (
		"You are an expert document analyst. The user has provided a document (PDF) and the text content "
		"has been extracted for you. Your task is to analyze the text and respond to the user's request.\n"
		"If the user asks you to extract tabular data into a NEW CSV, you MUST respond with the exact phrase "
		'"CSV_REQUEST: [Your detailed prompt for generating the transformed CSV from the document text]". '
		'The prompt you provide after "CSV_REQUEST:" should be precise. For example: '
		'"CSV_REQUEST: Extract all tables from the document into a single CSV."\n'
		"If the user asks you to generate an image based on the document's content, respond with: "
		"\"IMAGE_REQUEST: [Your detailed prompt for generating the image, e.g., 'A diagram illustrating the "
		"main points of the document.']\"\n"
		"Otherwise, provide a concise textual response summarizing your findings or answering the user's question."
	)


def tool_output_message(fact: str) -> str:
	return f"Tool Output: {fact}"


def csv_analysis_prompt(prompt: str, records: List[Record]) -> str:
	"""Embed parsed CSV records as pretty JSON after the user's request."""
	data = json.dumps(records, indent=2, ensure_ascii=False)
	return f"{prompt}\n\nCSV Data (JSON format):\n```json\n{data}\n```\n"


def document_analysis_prompt(prompt: str, text: str) -> str:
	return f"{prompt}\n\nDocument Text:\n```\n{text}\n```\n"


def csv_generation_prompt(prompt: str, analyzed_data=None) -> str:
	"""Return the single-shot prompt for CSV generation.

	Previously analyzed records are embedded as JSON and analyzed document text
	as a plain fence; without either the bare prompt is used. The model is always
	told to answer with a fenced JSON array.
	"""
	if isinstance(analyzed_data, list):
		data = json.dumps(analyzed_data, indent=2, ensure_ascii=False)
		body = f"Based on the following data, please generate a CSV: {prompt}\n\nData (JSON format):\n```json\n{data}\n```\n"
	elif isinstance(analyzed_data, str) and analyzed_data:
		body = (
			f"Based on the following document text, please generate a CSV: {prompt}\n\n"
			f"Document Text:\n```\n{analyzed_data}\n```\n"
		)
	else:
		body = prompt
	return (
		f"{body}\n\n**IMPORTANT**: Output the result as a JSON array of objects, enclosed in triple backticks "
		'and \'json\' tag. For example: ```json\n[{"Col1": "Val1"}, {"Col2": "Val2"}]\n``` No other text around the JSON.'
	)


def image_generation_prompt(prompt: str, has_image: bool) -> str:
	if has_image:
		return f"Given the attached image, please provide a textual output: {prompt}"
	return prompt
