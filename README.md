# tcproposal

A library for working with price information requests (ЗЦИ) and the
technical-commercial proposals (ТКП) that suppliers send in reply.
All data lives in an in-memory `tcproposal.store.Store`; every
operation takes the store as its first argument.

## Modules

- `tcproposal.messages` — user-facing `Message` / `Messages`, the
  `ApiResponse` and `PaginatedData` envelopes, and the errors:
  `TcpError` with its subclasses `BusinessError` (carries the collected
  `Messages`), `RecordNotFoundError`, `MonolithError`, `InternalError`
  and `ExportError`.
- `tcproposal.domain` — record dataclasses (`RequestHeader`,
  `RequestItem`, `RequestPartner`, `ProposalHeader`, `ProposalItem`,
  `ObjectIdentifier`) and status enums
  (`PriceInformationRequestStatus`, `PriceInformationRequestType`,
  `TcpGeneralStatus`, `TCPCheckStatus`, `TCPReviewResult`).
- `tcproposal.store` — `Store` with `insert`, `select`, `select_one`,
  `update`, `next_id` and a `transaction()` context manager that rolls
  back every change made in the block if it raises. Records are kept
  and returned as copies; an `id` of 0 is replaced on insert by the next
  sequence value. Inserting a duplicate uuid raises `ValueError`.
- `tcproposal.requests` — `create_requests_from_json` builds one request
  per plan from a `CreatePriceInformationRequest` (raises `TcpError` on a
  malformed uuid); `validate_create_request` returns error messages for
  empty required fields; `insert_price_information_requests` saves
  requests in one transaction and returns the new header ids; lookups
  `requests_by_plan_uuid(s)`, `proposals_by_request_uuid(s)`,
  `price_information_detail_by_id` / `_by_uuid` (the latter raise
  `RecordNotFoundError`).
- `tcproposal.listing` — the same lookups wrapped in `ApiResponse`, taking
  a uuid as text where one object is asked for.
- `tcproposal.partners` — `check_add_partner` and `check_delete_partner`
  decide, per supplier, whether it may be added to or removed from a
  request, depending on the request status, whether the partner is
  published and whether it has received proposals; deletion updates the
  store.
- `tcproposal.price_info` — `delete_price_info` marks as deleted the
  caller's requests in status 70 or 100; raises `BusinessError` if any
  request belongs to another user.
- `tcproposal.checks` — `check_request_price_info` lists what is still
  missing from an `UpdatePriceInformationRequest` before publication.
- `tcproposal.monolith` — `Attachment`, `Hierarchy`, `Organization`,
  `FoldersCategory`, `has_valid_file`, and `MonolithClient`, an
  in-memory directory of organizations and attachment hierarchies.
- `tcproposal.proposals` — `approve_proposal` confirms proposals as
  received after checking header fields, position fields and the
  attached proposal document; `apply_proposal_pricing` marks proposals
  as reviewed and whether they count when pricing.
- `tcproposal.commercial_offer` — handling of messages from the trading
  platform: `commercial_offer_request_confirmation`,
  `commercial_offer_response` (stores a received proposal and its
  positions), `find_or_create_partner`,
  `commercial_offer_add_doc_response`.
- `tcproposal.background` — `close_expired_requests` closes requests
  still accepting proposals whose end date has passed;
  `PeriodicTask` and `start_background_tasks` run that job every hour on
  the running asyncio event loop.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from datetime import date
from uuid import UUID

from tcproposal.store import Store
from tcproposal.requests import (
    CreatePriceInformationRequest, PlanUUIDs, FileFormData,
    create_requests_from_json, validate_create_request,
    insert_price_information_requests, requests_by_plan_uuid,
)

store = Store()
dto = CreatePriceInformationRequest(
    plan_data=[PlanUUIDs(
        plan_uuid="550e8400-e29b-41d4-a716-446655440000",
        plan_item_uuids=["550e8400-e29b-41d4-a716-446655440001"],
    )],
    period_of_validity=date(2030, 1, 31),
    request_type=1,
    technical_specification=FileFormData(uuid="spec-1", name="spec.doc"),
    draft_treaty=FileFormData(uuid="treaty-1", name="treaty.doc"),
    template_tkp=FileFormData(uuid="template-1", name="template.doc"),
)
assert validate_create_request(dto).is_empty()

ids = insert_price_information_requests(store, create_requests_from_json(dto))
found = requests_by_plan_uuid(store, UUID("550e8400-e29b-41d4-a716-446655440000"))
```

## What this package does not do

- It has no HTTP server, routes or command-line program; the operations
  are plain functions to be called from your own code.
- It has no persistent database: `Store` keeps everything in memory.
- `MonolithClient` does not talk to any remote service; it answers from
  the organizations and hierarchies it was constructed with.
- It does not fetch plan data from other services, and it does not
  export tables or produce documents.