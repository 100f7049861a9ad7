"""
Shared fixtures: scripted HTTP clients, recording sleepers and feed XML.
"""

import asyncio
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import pytest

from govdata.src.api_client import HTTPResponse

FEED_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:ns1="https://www.fpds.gov/FPDS">
  <title type="text">FPDS-NG Search Results</title>
  {entries}
</feed>"""

ENTRY_TEMPLATE = """<entry>
    <title>{title}</title>
    <link rel="alternate" type="text/html" href="https://www.fpds.gov/view/{piid}"/>
    <content type="application/xml">
      <ns1:award version="1.5">
        <ns1:awardID>
          <ns1:awardContractID>
            <ns1:PIID>{piid}</ns1:PIID>
          </ns1:awardContractID>
          <ns1:referencedIDVID>
            <ns1:PIID>IDV-{piid}</ns1:PIID>
          </ns1:referencedIDVID>
        </ns1:awardID>
        <ns1:relevantContractDates>
          <ns1:signedDate>{signed_date}</ns1:signedDate>
          <ns1:effectiveDate>2023-01-15 00:00:00</ns1:effectiveDate>
          <ns1:currentCompletionDate>2024-01-14 00:00:00</ns1:currentCompletionDate>
        </ns1:relevantContractDates>
        <ns1:dollarValues>
          <ns1:obligatedAmount>{amount}</ns1:obligatedAmount>
          <ns1:baseAndAllOptionsValue>250000.50</ns1:baseAndAllOptionsValue>
        </ns1:dollarValues>
        <ns1:contractData>
          <ns1:contractActionType description="DEFINITIVE CONTRACT">D</ns1:contractActionType>
          <ns1:descriptionOfContractRequirement>IT SUPPORT SERVICES</ns1:descriptionOfContractRequirement>
        </ns1:contractData>
        <ns1:productOrServiceInformation>
          <ns1:productOrServiceCode description="IT AND TELECOM">D399</ns1:productOrServiceCode>
          <ns1:principalNAICSCode description="CUSTOM COMPUTER PROGRAMMING SERVICES">541511</ns1:principalNAICSCode>
        </ns1:productOrServiceInformation>
        <ns1:purchaserInformation>
          <ns1:contractingOfficeAgencyID name="DEPT OF THE ARMY">2100</ns1:contractingOfficeAgencyID>
          <ns1:contractingOfficeID name="W6QK ACC-APG">W15P7T</ns1:contractingOfficeID>
        </ns1:purchaserInformation>
        <ns1:vendor>
          <ns1:vendorHeader>
            <ns1:vendorName>{vendor}</ns1:vendorName>
          </ns1:vendorHeader>
          <ns1:vendorSiteDetails>
            <ns1:vendorSocioEconomicIndicators>
              <ns1:isServiceRelatedDisabledVeteranOwnedBusiness>true</ns1:isServiceRelatedDisabledVeteranOwnedBusiness>
              <ns1:isSmallBusiness>false</ns1:isSmallBusiness>
              <ns1:isWomenOwned>maybe</ns1:isWomenOwned>
            </ns1:vendorSocioEconomicIndicators>
            <ns1:vendorLocation>
              <ns1:city>ARLINGTON</ns1:city>
              <ns1:state>VA</ns1:state>
            </ns1:vendorLocation>
          </ns1:vendorSiteDetails>
        </ns1:vendor>
        <ns1:competition>
          <ns1:extentCompeted description="FULL AND OPEN COMPETITION">A</ns1:extentCompeted>
          <ns1:numberOfOffersReceived>3</ns1:numberOfOffersReceived>
        </ns1:competition>
      </ns1:award>
    </content>
  </entry>"""


def make_entry(piid: str = "W912DY-20-C-0001", title: str = "Award 1",
               signed_date: str = "2023-01-10 00:00:00", amount: str = "125000.00",
               vendor: str = "ACME CORP") -> str:
    return ENTRY_TEMPLATE.format(piid=piid, title=title, signed_date=signed_date,
                                 amount=amount, vendor=vendor)


def make_feed(*entries: str) -> str:
    return FEED_TEMPLATE.format(entries="\n  ".join(entries))


def page_of(url: str) -> int:
    """Page number encoded in a request URL."""
    return int(parse_qs(urlparse(url).query).get('page', ['1'])[0])


def piid_of(url: str) -> Optional[str]:
    values = parse_qs(urlparse(url).query).get('PIID')
    return values[0] if values else None


class FakeHTTPClient:
    """
    HTTP client returning scripted responses.

    ``handler(url)`` may return an HTTPResponse or raise. ``delays``
    maps page number -> seconds to wait before answering.
    """

    def __init__(self, handler: Callable[[str], HTTPResponse], delays: Optional[Dict[int, float]] = None):
        self.handler = handler
        self.delays = delays or {}
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.completion_order: List[int] = []

    async def get(self, url: str, headers: Dict[str, str]) -> HTTPResponse:
        self.calls.append(url)
        self.last_headers = headers
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(page_of(url), 0)
            await asyncio.sleep(delay)
            response = self.handler(url)
            self.completion_order.append(page_of(url))
            return response
        finally:
            self.in_flight -= 1


class RecordingSleeper:
    """Sleeper that records requested delays and returns immediately."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def ok(text: str) -> HTTPResponse:
    return HTTPResponse(status=200, reason="OK", text=text)


@pytest.fixture
def sleeper():
    return RecordingSleeper()


@pytest.fixture
def single_entry_feed():
    return make_feed(make_entry())
