"""
Scheduling Domain

Appointment placement for the salon: duration/approval policy per
service-station pair, slot reservation, drag-and-drop relocation on the
manager schedule and proposed-meeting claims.

Structure:
```
salon_booking/domain/scheduling/
├── errors.py               # Error taxonomy (status code per kind)
├── schemas.py              # Request/response schemas
├── repository.py           # Appointment, policy and meeting queries
├── time_calculator.py      # Business-time parsing and window arithmetic
├── stations.py             # Virtual garden column normalization
├── policy_service.py       # Duration & eligibility resolver
├── reservation_service.py  # POST /reserve-appointment
├── relocation_service.py   # POST /move-appointment
├── proposal_service.py     # POST /book-proposed-meeting
├── schedule_service.py     # GET /manager-schedule (cached)
└── router.py               # FastAPI endpoints
```
"""
